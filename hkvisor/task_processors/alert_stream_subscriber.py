import logging
from typing import Any, Optional

from hkvisor.cameras.base import Camera
from hkvisor.models import CameraEvent, EventNotificationAlert
from hkvisor.utils.config import CameraConfig
from hkvisor.utils.time_utils import now_in_timezone

from .stream_processor_base import StreamProcessor

logger = logging.getLogger(__name__)


class AlertStreamSubscriber(StreamProcessor):
    """
    Task processor for one camera's alert stream.

    Turns the camera's active/inactive alerts into one CameraEvent per
    inactive to active transition and hands each one to the dispatcher.
    """

    def __init__(
        self,
        config: Any,
        camera_config: CameraConfig,
        camera: Camera,
        reconnect_delay: float = 5.0,
        max_reconnect_delay: float = 300.0,
        max_reconnect_attempts: Optional[int] = None,
    ):
        super().__init__(config, reconnect_delay, max_reconnect_delay, max_reconnect_attempts)
        self.camera_config = camera_config
        self.camera = camera
        self.dispatcher = None
        self.active = False

    @property
    def label(self) -> str:
        return f"SUBSCRIBER[{self.camera_config.name}]"

    def set_dispatcher(self, dispatcher):
        """Set reference to the dispatcher events are queued on."""
        self.dispatcher = dispatcher

    def handle_alert(self, alert: EventNotificationAlert) -> Optional[CameraEvent]:
        """
        Fold one alert into the active flag.

        Returns:
            The event to emit when the alert starts a new activity, else None
        """
        if alert.is_active:
            if self.active:
                return None
            self.active = True
            timestamp = alert.date_time or now_in_timezone(self.config.app.timezone)
            return CameraEvent(camera=self.camera_config, event_type=alert.event_type, timestamp=timestamp)
        if alert.is_inactive:
            self.active = False
        return None

    async def consume_stream(self) -> None:
        """Read the camera's alert stream until it ends."""
        self.active = False
        async for alert in self.camera.stream_alerts():
            self.mark_progress()
            logger.debug(
                f"{self.label}: {alert.event_type} event ({alert.event_state} - {alert.post_count})"
            )
            event = self.handle_alert(alert)
            if event is None:
                continue

            logger.info(f"{self.label}: New {event.event_type} event")
            if self.dispatcher:
                await self.dispatcher.add_work(event)
            else:
                logger.warning(f"{self.label}: No dispatcher set, dropping event {event}")
