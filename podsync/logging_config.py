"""Logging setup for processes that embed the pod client or run the fake sidecar."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from .settings import settings

DEFAULT_FORMAT = "[%(asctime)s] [{component}] %(levelname)s %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    component: str = "podsync",
    level: int | str | None = None,
    log_file: str | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """Configure the root logger and return the component logger.

    ``level`` and ``log_file`` fall back to PODSYNC_LOG_LEVEL / PODSYNC_LOG_FILE.
    """
    if level is None:
        level = settings.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if format_string is None:
        format_string = DEFAULT_FORMAT.format(component=component.upper())
    log_file = log_file or settings.log_file

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(level=level, format=format_string, datefmt=DATE_FORMAT, handlers=handlers, force=True)

    # httpx logs every request at INFO; keep it quiet unless asked for.
    if not settings.log_requests:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger(component)
    logger.debug("logging initialized (level=%s)", logging.getLevelName(level))
    return logger
