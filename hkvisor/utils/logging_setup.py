import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from hkvisor.utils.config import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"


def configure_logging(config: Optional[LoggingConfig] = None, verbose: bool = False) -> None:
    """Configure root logging for the daemon.

    Args:
        config: Logging section of the configuration, defaults when None
        verbose: Force DEBUG level regardless of the configured level
    """
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if config.log_file:
        log_dir = os.path.dirname(config.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handler = RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_log_size,
            backupCount=config.backup_count,
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)
