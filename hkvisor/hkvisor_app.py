import asyncio
import logging
from typing import Dict, Optional

import httpx

from hkvisor.api_integrations.smtp import SmtpNotifier
from hkvisor.cameras.base import Camera
from hkvisor.cameras.hikvision import HikvisionCamera
from hkvisor.task_processors import AlertStreamSubscriber, EventDispatcher
from hkvisor.utils.config import Config

logger = logging.getLogger(__name__)


class HkvisorApp:
    """
    Orchestrates the alert stream subscribers and the event dispatcher.
    One subscriber runs per configured camera; all of them feed the single
    dispatcher through its queue.
    """

    def __init__(
        self,
        config: Config,
        cameras: Optional[Dict[str, Camera]] = None,
        notifier: Optional[SmtpNotifier] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the application.

        Args:
            config: Configuration object
            cameras: Cameras by name (optional, created from the config if not provided)
            notifier: Notification sender (optional, created from the config if not provided)
            client: HTTP client shared by the cameras (optional)
        """
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()
        self._closed = False

        if cameras is not None:
            self.cameras = cameras
        else:
            self.cameras = {}
            for camera_config in config.cameras:
                logger.info(f"Initializing camera {camera_config.name} with IP: {camera_config.ip_address}")
                self.cameras[camera_config.name] = HikvisionCamera(
                    camera_config,
                    client=self.client,
                    timezone=config.app.timezone,
                    connect_timeout=config.stream.connect_timeout,
                )

        self.notifier = notifier or SmtpNotifier(config.receivers.smtp)

        self.dispatcher = EventDispatcher(
            config=self.config,
            notifier=self.notifier,
            cameras=self.cameras,
        )

        self.subscribers = [
            AlertStreamSubscriber(
                config=self.config,
                camera_config=camera_config,
                camera=self.cameras[camera_config.name],
                reconnect_delay=config.stream.reconnect_delay,
                max_reconnect_delay=config.stream.max_reconnect_delay,
                max_reconnect_attempts=config.stream.max_reconnect_attempts,
            )
            for camera_config in config.cameras
        ]

        self._wire_processors()

        self._shutdown_event = asyncio.Event()

        logger.info(f"HkvisorApp initialized with {len(self.subscribers)} cameras")

    def _wire_processors(self):
        """Wire up the dependencies between processors."""
        for subscriber in self.subscribers:
            subscriber.set_dispatcher(self.dispatcher)

    async def initialize(self):
        """Start the dispatcher, then one subscriber per camera."""
        logger.info("Initializing HkvisorApp")
        await self.dispatcher.start()
        for subscriber in self.subscribers:
            await subscriber.start()
        logger.info("HkvisorApp initialization complete")

    async def run(self):
        """Run until shutdown is requested or every stream has ended."""
        logger.info("Running HkvisorApp")
        await self.initialize()

        shutdown_task = asyncio.create_task(self._shutdown_event.wait())
        streams_task = asyncio.create_task(self._wait_for_subscribers())
        try:
            await asyncio.wait({shutdown_task, streams_task}, return_when=asyncio.FIRST_COMPLETED)
            if streams_task.done() and not self._shutdown_event.is_set():
                # Deliver whatever the streams produced before they ended
                await self.dispatcher.drain()
        finally:
            for task in (shutdown_task, streams_task):
                task.cancel()
            await self.shutdown()

    async def _wait_for_subscribers(self):
        await asyncio.gather(
            *(subscriber.wait_closed() for subscriber in self.subscribers),
            return_exceptions=True,
        )
        logger.info("All camera streams have ended")

    def request_shutdown(self):
        """Ask run() to return; safe to call from a signal handler."""
        self._shutdown_event.set()

    async def shutdown(self):
        """Shut down the application."""
        if self._closed:
            return
        self._closed = True
        logger.info("Shutting down HkvisorApp")
        self._shutdown_event.set()

        for subscriber in self.subscribers:
            await subscriber.stop()
        await self.dispatcher.stop()

        if self._owns_client:
            await self.client.aclose()

        logger.info("HkvisorApp shutdown complete")

    def get_processor_status(self):
        """Get status of all processors."""
        return {
            "dispatcher": self.dispatcher.get_status(),
            "subscribers": {
                subscriber.camera_config.name: subscriber.get_status()
                for subscriber in self.subscribers
            },
        }
