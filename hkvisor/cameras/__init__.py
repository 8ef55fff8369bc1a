from .base import Camera
from .hikvision import HikvisionCamera

__all__ = ["Camera", "HikvisionCamera"]
