"""Logging configuration for the CLI and scenario runs."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger; unknown level names fall back to INFO."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric)

    # Third-party HTTP client noise
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
