"""Base class for queue processors that process work items."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

logger = logging.getLogger(__name__)


class QueueProcessor(ABC):
    """
    Base class for processors that consume a work queue.

    Producers hand work over with add_work(), which waits while the queue is
    full. Items are processed one at a time, in arrival order, by a single
    consumer task, so subclasses can keep unlocked state touched only from
    process_item().
    """

    def __init__(self, config: Any, queue_size: int = 0):
        """
        Initialize the queue processor.

        Args:
            config: Configuration object
            queue_size: Maximum number of queued items, 0 for unbounded
        """
        self.config = config
        self.queue_size = queue_size

        self._queue = None  # Defer creation until start()
        self._processor_task = None
        self._shutdown_event = asyncio.Event()

        logger.info(f"Initialized {self.__class__.__name__}")

    @abstractmethod
    async def process_item(self, item: Any) -> None:
        """Process a single work item."""
        pass

    def _ensure_queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.queue_size)
        return self._queue

    async def add_work(self, item: Any) -> None:
        """Add work to the processor's queue, waiting while it is full."""
        await self._ensure_queue().put(item)
        logger.debug(f"{self.__class__.__name__}: Added item to queue: {item}")

    async def start(self) -> None:
        """Start the queue processor."""
        logger.info(f"Starting {self.__class__.__name__}")
        self._ensure_queue()
        self._shutdown_event.clear()
        self._processor_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the queue processor."""
        logger.info(f"Stopping {self.__class__.__name__}")
        self._shutdown_event.set()

        if self._processor_task:
            self._processor_task.cancel()
            try:
                await self._processor_task
            except asyncio.CancelledError:
                pass
            self._processor_task = None

        # Drop unprocessed items so blocked producers are released
        if self._queue is not None:
            dropped = 0
            while not self._queue.empty():
                self._queue.get_nowait()
                self._queue.task_done()
                dropped += 1
            if dropped:
                logger.warning(f"{self.__class__.__name__}: Dropped {dropped} unprocessed items")

    async def drain(self) -> None:
        """Wait until every queued item has been processed."""
        if self._queue is not None and self._processor_task is not None:
            await self._queue.join()

    async def _run(self) -> None:
        """Main processing loop."""
        while not self._shutdown_event.is_set():
            item = await self._queue.get()
            try:
                await self.process_item(item)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"{self.__class__.__name__}: Error processing item {item}: {e}",
                    exc_info=True,
                )
            finally:
                self._queue.task_done()

    def get_queue_size(self) -> int:
        """Get the current queue size."""
        if self._queue is None:
            return 0
        return self._queue.qsize()

    def get_status(self) -> Dict[str, Any]:
        """Get processor status information."""
        return {
            "queue_size": self.get_queue_size(),
            "running": self._processor_task is not None
            and not self._processor_task.done(),
        }
