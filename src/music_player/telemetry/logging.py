"""Log handler setup; operator feedback stays on stdout, logs go to stderr."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "music_player.rich"


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Attach a single ``RichHandler`` to the package logger."""
    logger = logging.getLogger("music_player")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
        handler.set_name(_HANDLER_NAME)
        logger.addHandler(handler)
        logger.propagate = False

    return logger
