import os
import logging
from typing import AsyncIterator, Optional

import aiofiles
import httpx

from hkvisor.exceptions import AlertParseError, CameraError, SnapshotError
from hkvisor.models import EventNotificationAlert
from hkvisor.utils.config import CameraConfig
from hkvisor.utils.multipart import MultipartParser, get_boundary
from hkvisor.utils.time_utils import DEFAULT_TIMEZONE

from .base import Camera

logger = logging.getLogger(__name__)

ALERT_STREAM_PATH = "/ISAPI/Event/notification/alertStream"
SNAPSHOT_PATH = "/Streaming/channels/1/picture"


class HikvisionCamera(Camera):
    """Hikvision ISAPI camera implementation."""

    def __init__(
        self,
        config: CameraConfig,
        client: Optional[httpx.AsyncClient] = None,
        timezone: str = DEFAULT_TIMEZONE,
        connect_timeout: float = 10.0,
    ):
        """Initialize the camera.

        Args:
            config: Camera entry from the configuration
            client: Shared HTTP client, a private one is created per request when None
            timezone: Zone the camera's timestamps are interpreted in
            connect_timeout: Seconds allowed to establish a connection
        """
        self.config = config
        self.timezone = timezone
        self.connect_timeout = connect_timeout
        self._client = client
        self._auth = httpx.BasicAuth(config.username, config.password)

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def alert_stream_url(self) -> str:
        return f"http://{self.config.ip_address}{ALERT_STREAM_PATH}"

    @property
    def snapshot_url(self) -> str:
        return f"http://{self.config.ip_address}{SNAPSHOT_PATH}"

    def _get_client(self):
        """Returns the client to use and whether the caller must close it."""
        if self._client:
            return self._client, False
        return httpx.AsyncClient(), True

    async def stream_alerts(self) -> AsyncIterator[EventNotificationAlert]:
        """Yield alerts from the camera's alert stream until it ends.

        Sections that are not valid alert documents are logged and skipped.

        Raises:
            CameraError: if the camera answers with a non-200 status
            MultipartError: if the stream is not valid multipart content
            httpx.HTTPError: on transport failures
        """
        client, close_client = self._get_client()
        # The stream is expected to stay open indefinitely between alerts
        timeout = httpx.Timeout(None, connect=self.connect_timeout)
        try:
            logger.info(f"Subscribing to alert stream of camera {self.name} at {self.config.ip_address}")
            async with client.stream("GET", self.alert_stream_url, auth=self._auth, timeout=timeout) as response:
                if response.status_code != 200:
                    raise CameraError(self.name, f"alert stream returned status {response.status_code}")

                boundary = get_boundary(response.headers.get("content-type"))
                logger.debug(f"Camera {self.name} alert stream boundary: {boundary}")
                parser = MultipartParser(boundary)

                async for chunk in response.aiter_bytes():
                    for part in parser.feed(chunk):
                        try:
                            yield EventNotificationAlert.from_xml(part.body, self.timezone)
                        except AlertParseError as e:
                            logger.warning(f"Skipping malformed alert from camera {self.name}: {e}")
                    if parser.finished:
                        break
                parser.close()
            logger.info(f"Alert stream of camera {self.name} ended")
        finally:
            if close_client:
                await client.aclose()

    async def capture_snapshot(self, output_path: str) -> str:
        """Fetch a still image and write it verbatim to output_path.

        Raises:
            SnapshotError: if the image could not be fetched or written
        """
        client, close_client = self._get_client()
        try:
            response = await client.get(self.snapshot_url, auth=self._auth)
            if response.status_code != 200:
                raise SnapshotError(self.name, f"snapshot returned status {response.status_code}")

            output_dir = os.path.dirname(output_path)
            if output_dir:
                os.makedirs(output_dir, exist_ok=True)
            async with aiofiles.open(output_path, "wb") as f:
                await f.write(response.content)

            logger.debug(f"Saved snapshot of camera {self.name} to {output_path} ({len(response.content)} bytes)")
            return output_path
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SnapshotError(self.name, f"snapshot request failed: {e}") from e
        except OSError as e:
            raise SnapshotError(self.name, f"unable to write snapshot to {output_path}: {e}") from e
        finally:
            if close_client:
                await client.aclose()
