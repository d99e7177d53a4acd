"""Loguru logging configuration for the API server and CLI.

Records go to stderr as readable lines, or as JSON objects when ``json_logs``
is set. A rotating file sink is added when a log directory is configured.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "geocode-api.log"

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"

# httpx logs every request URL at INFO, and provider URLs carry the API key
_QUIET_STDLIB_LOGGERS = ("httpx", "httpcore")


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Replace all Loguru sinks with the application's sinks.

    Args:
        log_level: Minimum level to emit, case-insensitive.
        log_dir: Optional directory for ``geocode-api.log``; rotated every
            24 hours and kept for 7 days.
        json_logs: Serialize records as JSON instead of formatted text.
    """
    level = log_level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT, serialize=json_logs)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / LOG_FILE_NAME,
            level=level,
            format=_LOG_FORMAT,
            serialize=json_logs,
            rotation="24h",
            retention="7 days",
        )

    for name in _QUIET_STDLIB_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
