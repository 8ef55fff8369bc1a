from abc import ABC, abstractmethod
from typing import AsyncIterator

from hkvisor.models import EventNotificationAlert


class Camera(ABC):
    """Base class for camera implementations."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique camera name from the configuration."""
        pass

    @abstractmethod
    def stream_alerts(self) -> AsyncIterator[EventNotificationAlert]:
        """Open the camera's event stream and yield alerts as they arrive.

        The iterator finishes when the camera ends the stream cleanly and
        raises on transport or framing errors.
        """
        pass

    @abstractmethod
    async def capture_snapshot(self, output_path: str) -> str:
        """Save a still image from the camera to output_path and return the path."""
        pass
