"""Task processors package for the hkvisor daemon."""

from .queue_processor_base import QueueProcessor
from .stream_processor_base import StreamProcessor
from .alert_stream_subscriber import AlertStreamSubscriber
from .event_dispatcher import EventDispatcher, SweepTick

__all__ = [
    'QueueProcessor',
    'StreamProcessor',
    'AlertStreamSubscriber',
    'EventDispatcher',
    'SweepTick',
]
