"""
Models package for hkvisor.

This package contains the data models passed between the stream subscribers
and the dispatcher.
"""

from .alert import EventNotificationAlert, STATE_ACTIVE, STATE_INACTIVE
from .camera_event import CameraEvent
from .delivery_record import DeliveryRecord

__all__ = [
    "EventNotificationAlert",
    "STATE_ACTIVE",
    "STATE_INACTIVE",
    "CameraEvent",
    "DeliveryRecord",
]
