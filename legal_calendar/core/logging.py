"""Logging configuration for the application."""

import logging
import sys

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure application-wide logging.

    Level comes from LOG_LEVEL unless given explicitly. Output goes to stdout.
    Calling it again only adjusts the level.
    """
    name = (level or get_settings().log_level).upper()
    log_level = getattr(logging, name, logging.INFO)
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(log_level)
        return
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
