"""Logging configuration for the sw-mc library."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from sw_mc.config import SwMcConfig

ROOT_LOGGER = "sw_mc"


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Attach stderr and optional file handlers to the package logger.

    The library never calls this itself; host programs opt in.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def setup_logging_from_config(config: SwMcConfig) -> logging.Logger:
    """Configure logging from an ``SwMcConfig``."""
    return setup_logging(config.log_level.value, config.log_file)


def get_logger(name: str) -> logging.Logger:
    """Get a child logger under the sw_mc namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
