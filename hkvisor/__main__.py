#!/usr/bin/env python
import asyncio
import logging
import signal
import sys

import click

from hkvisor.exceptions import ConfigError
from hkvisor.hkvisor_app import HkvisorApp
from hkvisor.utils.config import DEFAULT_CONFIG_FILE, load_config
from hkvisor.utils.logging_setup import configure_logging
from hkvisor.version import get_full_version

logger = logging.getLogger(__name__)


async def main(app: HkvisorApp):
    """Run the application until it is interrupted."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, app.request_shutdown)
        except (NotImplementedError, RuntimeError):
            # Not supported on every platform; KeyboardInterrupt still works
            pass

    try:
        await app.run()
    except asyncio.CancelledError:
        logger.info("Application is shutting down.")
    finally:
        await app.shutdown()


@click.command()
@click.option(
    "--config.file",
    "--config",
    "config_file",
    default=DEFAULT_CONFIG_FILE,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="hkvisor configuration file.",
)
@click.option("--verbose", is_flag=True, default=False, help="Verbose output.")
@click.version_option(get_full_version(), prog_name="hkvisor")
def cli(config_file: str, verbose: bool):
    """Watch Hikvision camera alert streams and email snapshots of new events."""
    configure_logging(verbose=verbose)
    try:
        config = load_config(config_file)
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    configure_logging(config.logging, verbose=verbose)
    logger.info(f"Loaded {len(config.cameras)} cameras from {config_file}")

    asyncio.run(main(HkvisorApp(config)))


def main_entry():
    """Entry point for console script."""
    try:
        cli()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main_entry()
