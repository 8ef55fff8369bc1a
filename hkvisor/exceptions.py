"""Exceptions raised by hkvisor components."""


class HkvisorError(Exception):
    """Base class for all hkvisor errors."""


class ConfigError(HkvisorError):
    """The configuration file is missing, unreadable or invalid."""


class CameraError(HkvisorError):
    """A request to a camera failed."""

    def __init__(self, camera_name: str, message: str):
        super().__init__(f"{camera_name}: {message}")
        self.camera_name = camera_name


class SnapshotError(CameraError):
    """A still image could not be fetched or written."""


class MultipartError(HkvisorError):
    """The alert stream is not valid multipart content."""


class AlertParseError(HkvisorError):
    """A multipart section is not a valid event notification document."""
