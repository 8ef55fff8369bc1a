import re
from datetime import datetime

import pytz

DEFAULT_TIMEZONE = "America/New_York"
CAMERA_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Trailing UTC offset the cameras append to their local wall-clock time
_OFFSET_SUFFIX = re.compile(r"(Z|[+-]\d{2}:?\d{2})$")
_FRACTION = re.compile(r"\.\d+$")


def get_timezone(tz_str: str):
    """Returns the pytz zone for tz_str, falling back to UTC if it is unknown."""
    try:
        return pytz.timezone(tz_str)
    except pytz.UnknownTimeZoneError:
        return pytz.utc


def parse_camera_datetime(dt_str: str, tz_str: str = DEFAULT_TIMEZONE) -> datetime:
    """Parses a camera timestamp into a timezone-aware datetime.

    The offset suffix sent by the camera is discarded and the remaining
    wall-clock value is interpreted in tz_str, whatever the offset said.

    Raises:
        ValueError: if the remaining value is not an ISO-like date and time
    """
    value = _OFFSET_SUFFIX.sub("", dt_str.strip())
    value = _FRACTION.sub("", value)
    dt_naive = datetime.strptime(value, CAMERA_DATE_FORMAT)
    return get_timezone(tz_str).localize(dt_naive)


def now_in_timezone(tz_str: str = DEFAULT_TIMEZONE) -> datetime:
    """Current time as an aware datetime in tz_str."""
    return datetime.now(get_timezone(tz_str))
