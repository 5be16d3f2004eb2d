"""Logging configuration helpers for the cover scraper."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = os.getenv("COVERS_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("COVERS_LOG_FILE")

ROOT_LOGGER = "coverscraper"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package root, configuring the root once."""
    root = logging.getLogger(ROOT_LOGGER)

    if not root.handlers:
        root.setLevel(DEFAULT_LEVEL)
        root.propagate = False
        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

        if LOG_FILE:
            log_dir = os.path.dirname(LOG_FILE)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE,
                maxBytes=1_000_000,
                backupCount=3,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return root.getChild(name)


def set_level(level: str) -> None:
    """Override the level chosen from the environment (used by the CLI)."""
    get_logger(ROOT_LOGGER).setLevel(level.upper())
