from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass  # mutated in place by the dispatcher
class DeliveryRecord:
    """Notification state for the latest event of one camera."""

    event_type: str
    timestamp: datetime
    image_path: Optional[str] = None
    attempts: int = 0
    delivered: bool = False

    def can_retry(self, max_attempts: int) -> bool:
        """True while the record is undelivered and has attempts left."""
        return not self.delivered and self.attempts < max_attempts

    def is_exhausted(self, max_attempts: int) -> bool:
        """True once every attempt has been used without a delivery."""
        return not self.delivered and self.attempts >= max_attempts
