"""Logging setup: console output plus an optional rotating log file."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from catalog_api.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(service_name: str) -> None:
    """Configure the root logger once per process."""
    level = getattr(logging, settings.LOG_LEVEL.strip().upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if settings.LOG_DIR:
        try:
            Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    Path(settings.LOG_DIR) / f"{service_name}.log",
                    maxBytes=settings.LOG_MAX_BYTES,
                    backupCount=settings.LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
            )
        except OSError as error:
            # Keep the service up on console logging alone.
            logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, force=True)
            logging.getLogger(__name__).warning(
                "File logging disabled: failed to initialize %s (%s)",
                settings.LOG_DIR,
                error,
            )
            return

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
