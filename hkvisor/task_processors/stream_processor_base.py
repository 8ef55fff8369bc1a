"""Base class for processors that hold a long-lived connection open."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class StreamProcessor(ABC):
    """
    Base class for processors that consume an endless stream.

    consume_stream() runs one connection to completion. A clean return ends
    the processor. An exception is logged and the connection is retried
    after an exponential backoff, so one failing stream never affects other
    processors. After max_reconnect_attempts consecutive failures the
    processor gives up and reports itself degraded.
    """

    def __init__(
        self,
        config: Any,
        reconnect_delay: float = 5.0,
        max_reconnect_delay: float = 300.0,
        max_reconnect_attempts: Optional[int] = None,
    ):
        """
        Initialize the stream processor.

        Args:
            config: Configuration object
            reconnect_delay: Seconds to wait before the first reconnect
            max_reconnect_delay: Upper bound for the doubling reconnect delay
            max_reconnect_attempts: Consecutive failures tolerated, None for no limit
        """
        self.config = config
        self.reconnect_delay = reconnect_delay
        self.max_reconnect_delay = max_reconnect_delay
        self.max_reconnect_attempts = max_reconnect_attempts

        self.failures = 0
        self.degraded = False
        self._connection_progress = False
        self._processor_task = None
        self._shutdown_event = asyncio.Event()

        logger.info(f"Initialized {self.__class__.__name__}")

    @property
    def label(self) -> str:
        """Name used in log messages."""
        return self.__class__.__name__

    @abstractmethod
    async def consume_stream(self) -> None:
        """
        Run one connection until the stream ends.

        Implementations call mark_progress() whenever the connection
        delivers data, so a later failure starts the backoff over.
        """
        pass

    def mark_progress(self) -> None:
        """Record that the current connection is delivering data."""
        self._connection_progress = True

    def get_backoff_delay(self) -> float:
        """Delay before the next reconnect, based on consecutive failures."""
        if self.failures <= 0:
            return 0.0
        return min(self.reconnect_delay * (2 ** (self.failures - 1)), self.max_reconnect_delay)

    async def start(self) -> None:
        """Start the stream processor."""
        logger.info(f"Starting {self.label}")
        self._shutdown_event.clear()
        self._processor_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the stream processor."""
        logger.info(f"Stopping {self.label}")
        self._shutdown_event.set()

        if self._processor_task:
            self._processor_task.cancel()
            try:
                await self._processor_task
            except asyncio.CancelledError:
                pass
            self._processor_task = None

    async def wait_closed(self) -> None:
        """Wait until the processor has finished on its own."""
        if self._processor_task:
            await asyncio.shield(self._processor_task)

    async def _run(self) -> None:
        """Main connection loop."""
        while not self._shutdown_event.is_set():
            self._connection_progress = False
            try:
                await self.consume_stream()
                logger.info(f"{self.label}: Stream completed")
                return
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._connection_progress:
                    self.failures = 0
                self.failures += 1
                logger.error(f"{self.label}: Stream failed ({self.failures} consecutive): {e}")

            if self.max_reconnect_attempts is not None and self.failures > self.max_reconnect_attempts:
                self.degraded = True
                logger.error(
                    f"{self.label}: Giving up after {self.failures} consecutive failures, stream is degraded"
                )
                return

            delay = self.get_backoff_delay()
            logger.info(f"{self.label}: Reconnecting in {delay:.1f}s")
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

    def get_status(self) -> Dict[str, Any]:
        """Get processor status information."""
        return {
            "running": self._processor_task is not None
            and not self._processor_task.done(),
            "failures": self.failures,
            "degraded": self.degraded,
        }
