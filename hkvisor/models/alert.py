"""
Event notification alert model.

Hikvision cameras push one EventNotificationAlert XML document per multipart
section of their alert stream.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hkvisor.exceptions import AlertParseError
from hkvisor.utils.time_utils import DEFAULT_TIMEZONE, parse_camera_datetime

logger = logging.getLogger(__name__)

ROOT_TAG = "EventNotificationAlert"

STATE_ACTIVE = "active"
STATE_INACTIVE = "inactive"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass
class EventNotificationAlert:
    """A single alert pushed by a camera."""

    event_type: str
    event_state: str
    ip_address: Optional[str] = None
    port: Optional[int] = None
    channel_id: Optional[int] = None
    date_time: Optional[datetime] = None
    post_count: Optional[int] = None
    description: str = ""

    @property
    def is_active(self) -> bool:
        return self.event_state == STATE_ACTIVE

    @property
    def is_inactive(self) -> bool:
        return self.event_state == STATE_INACTIVE

    @classmethod
    def from_xml(cls, payload: bytes, tz_str: str = DEFAULT_TIMEZONE) -> "EventNotificationAlert":
        """Parse an EventNotificationAlert document.

        Args:
            payload: Raw XML body of one multipart section
            tz_str: Zone the camera's wall-clock time is interpreted in

        Returns:
            The parsed alert

        Raises:
            AlertParseError: if the payload is not an EventNotificationAlert
        """
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as e:
            raise AlertParseError(f"Invalid alert XML: {e}") from e

        if _local_name(root.tag) != ROOT_TAG:
            raise AlertParseError(f"Unexpected root element: {_local_name(root.tag)}")

        # Hikvision firmware versions differ in the namespace they declare
        fields = {}
        for child in root:
            fields.setdefault(_local_name(child.tag), (child.text or "").strip())

        date_time = None
        raw_date_time = fields.get("dateTime")
        if raw_date_time:
            try:
                date_time = parse_camera_datetime(raw_date_time, tz_str)
            except ValueError:
                logger.warning(f"Unable to parse alert dateTime: {raw_date_time!r}")

        return cls(
            event_type=fields.get("eventType", ""),
            event_state=fields.get("eventState", ""),
            ip_address=fields.get("ipAddress") or None,
            port=_int_or_none(fields.get("portNo")),
            channel_id=_int_or_none(fields.get("channelID")),
            date_time=date_time,
            post_count=_int_or_none(fields.get("activePostCount")),
            description=fields.get("eventDescription", ""),
        )
