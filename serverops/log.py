"""Logging setup for serverops applications."""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """
    Configure the root logger for a serverops application.

    Without a log file, a stderr handler is installed only if the root logger
    has no handlers yet, so applications that configure logging themselves
    are left alone. With a log file, the root handlers are replaced by a
    single file handler opened in append mode.

    Args:
        log_level: Logging level name (default: "INFO")
        log_file: Optional path to a log file

    Returns:
        The "serverops" logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handler: logging.Handler | None = None
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file)
        logging.root.handlers = [handler]
    elif not logging.root.handlers:
        handler = logging.StreamHandler()
        logging.root.handlers = [handler]

    if handler is not None:
        handler.setFormatter(formatter)
        logging.root.setLevel(level)

    return logging.getLogger("serverops")
