"""Logging configuration shared by the client, sandbox and launcher."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LEVEL = "INFO"


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Return a named logger; output handlers are installed by setup_logging."""
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(getattr(logging, level.upper()))
    return logger


def setup_logging(level: str = DEFAULT_LEVEL) -> None:
    """Configure the root logger once for command-line entry points."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(console_handler)

    # Quiet chatty libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
