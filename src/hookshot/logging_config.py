"""Console logging through rich."""
from __future__ import annotations

import logging

from rich.logging import RichHandler


def configure_logging(log_level: str = "INFO") -> None:
    """Route the stdlib root logger through a single RichHandler.

    Args:
        log_level: Root log level name (e.g. ``"INFO"``, ``"DEBUG"``).
    """
    handler = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())
