"""Logging configuration for the FleetLog service."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import Settings, settings as default_settings

CONSOLE_HANDLER = "fleetlog.console"
FILE_HANDLER = "fleetlog.file"


def _has_handler(logger: logging.Logger, name: str) -> bool:
    return any(handler.get_name() == name for handler in logger.handlers)


def setup_logging(config: Optional[Settings] = None) -> None:
    config = config or default_settings
    logger = logging.getLogger()
    logger.setLevel(config.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if not _has_handler(logger, CONSOLE_HANDLER):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(CONSOLE_HANDLER)
        console_handler.setLevel(config.log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.log_file and not _has_handler(logger, FILE_HANDLER):
        try:
            config.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(config.log_file)
        except OSError as exc:
            logger.warning("Could not create file handler: %s", exc)
        else:
            file_handler.set_name(FILE_HANDLER)
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    logger.info("Logging configured")
