import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from hkvisor.api_integrations.smtp import SmtpNotifier
from hkvisor.cameras.base import Camera
from hkvisor.exceptions import CameraError
from hkvisor.models import CameraEvent, DeliveryRecord
from hkvisor.utils.paths import get_snapshot_path
from hkvisor.utils.time_utils import now_in_timezone

from .queue_processor_base import QueueProcessor

logger = logging.getLogger(__name__)


class SweepTick:
    """Queue item asking the dispatcher to retry pending deliveries."""

    def __str__(self) -> str:
        return "sweep tick"


class EventDispatcher(QueueProcessor):
    """
    Task processor that turns camera events into email notifications.

    Keeps one DeliveryRecord per camera. Every new event replaces the
    record of its camera, and is followed by a sweep that makes one more
    delivery attempt for every record that is still undelivered and under
    the attempt limit. Retries therefore advance when any camera reports an
    event, unless retry_interval_seconds adds a periodic sweep.
    """

    def __init__(self, config: Any, notifier: SmtpNotifier, cameras: Dict[str, Camera]):
        super().__init__(config, queue_size=config.app.event_queue_size)
        self.notifier = notifier
        self.cameras = cameras
        self.max_attempts = config.delivery.max_attempts
        self.retry_interval = config.delivery.retry_interval_seconds
        self._records: Dict[str, DeliveryRecord] = {}
        self._tick_task = None

    @property
    def records(self) -> Dict[str, DeliveryRecord]:
        """Snapshot of the current delivery records by camera name."""
        return dict(self._records)

    def get_record(self, camera_name: str) -> Optional[DeliveryRecord]:
        return self._records.get(camera_name)

    async def start(self) -> None:
        await super().start()
        if self.retry_interval:
            self._tick_task = asyncio.create_task(self._tick_loop())

    async def stop(self) -> None:
        if self._tick_task:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
            self._tick_task = None
        await super().stop()

    async def _tick_loop(self) -> None:
        """Queue a sweep every retry_interval seconds."""
        while not self._shutdown_event.is_set():
            await asyncio.sleep(self.retry_interval)
            if any(r.can_retry(self.max_attempts) for r in self._records.values()):
                await self.add_work(SweepTick())

    async def process_item(self, item: Any) -> None:
        if isinstance(item, CameraEvent):
            await self.handle_event(item)
        elif not isinstance(item, SweepTick):
            logger.warning(f"DISPATCHER: Ignoring unknown queue item: {item!r}")
            return
        await self.sweep()

    async def handle_event(self, event: CameraEvent) -> DeliveryRecord:
        """Capture a snapshot for the event and reset its camera's record."""
        logger.info(f"DISPATCHER: Received {event}")
        image_path = await self.capture_image(event.camera_name)
        record = DeliveryRecord(
            event_type=event.event_type,
            timestamp=now_in_timezone(self.config.app.timezone),
            image_path=image_path,
        )
        previous = self._records.get(event.camera_name)
        if previous and previous.can_retry(self.max_attempts):
            logger.info(
                f"DISPATCHER: Replacing undelivered {previous.event_type} record for {event.camera_name} "
                f"after {previous.attempts} attempts"
            )
        self._records[event.camera_name] = record
        return record

    async def capture_image(self, camera_name: str) -> Optional[str]:
        """Save a snapshot of the camera, or return None if that fails."""
        camera = self.cameras.get(camera_name)
        if camera is None:
            logger.error(f"DISPATCHER: Unknown camera {camera_name}, no snapshot taken")
            return None
        try:
            return await camera.capture_snapshot(
                get_snapshot_path(camera_name, self.config.app.snapshot_dir)
            )
        except CameraError as e:
            logger.error(f"DISPATCHER: Snapshot failed, notifying without image: {e}")
            return None
        except Exception as e:
            logger.error(
                f"DISPATCHER: Unexpected snapshot error for {camera_name}, notifying without image: {e}",
                exc_info=True,
            )
            return None

    async def sweep(self) -> None:
        """Make one delivery attempt for every pending record."""
        for camera_name, record in list(self._records.items()):
            if not record.can_retry(self.max_attempts):
                continue

            record.attempts += 1
            logger.info(
                f"DISPATCHER: {camera_name} event: {record.event_type} "
                f"(attempt {record.attempts}/{self.max_attempts})"
            )
            try:
                record.delivered = bool(
                    await self.notifier.send(camera_name, record.event_type, record.image_path)
                )
            except Exception as e:
                logger.error(f"DISPATCHER: Notifier error for {camera_name}: {e}", exc_info=True)
                record.delivered = False

            if record.is_exhausted(self.max_attempts):
                age = datetime.now(record.timestamp.tzinfo) - record.timestamp
                logger.error(
                    f"DISPATCHER: Giving up on {camera_name} {record.event_type} notification "
                    f"after {record.attempts} attempts ({age.total_seconds():.0f}s since the event)"
                )

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status["records"] = {
            name: {
                "event_type": r.event_type,
                "attempts": r.attempts,
                "delivered": r.delivered,
            }
            for name, r in self._records.items()
        }
        return status
