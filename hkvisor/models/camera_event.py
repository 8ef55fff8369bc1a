from dataclasses import dataclass
from datetime import datetime

from hkvisor.utils.config import CameraConfig


@dataclass(frozen=True)
class CameraEvent:
    """An inactive to active transition reported by one camera."""

    camera: CameraConfig
    event_type: str
    timestamp: datetime

    @property
    def camera_name(self) -> str:
        return self.camera.name

    def __str__(self) -> str:
        return f"{self.camera.name} {self.event_type} @ {self.timestamp.isoformat()}"
