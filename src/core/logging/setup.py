"""Logging setup and configuration."""

import logging
import sys
import uuid

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter

DEFAULT_LEVEL = logging.INFO

# Noisy loggers to suppress
NOISY_LOGGERS = [
    "aiohttp",
    "aiohttp.access",
    "aiokafka",
    "aiokafka.conn",
    "urllib3",
]


def generate_batch_id() -> str:
    """Short random identifier attached to every log line of one invocation."""
    return uuid.uuid4().hex[:12]


def setup_logging(
    name: str = "replicator",
    level: int = DEFAULT_LEVEL,
    json_format: bool = True,
    suppress_noisy: bool = True,
    request_id: str | None = None,
) -> logging.Logger:
    """
    Configure the root logger to write to stdout.

    The replicator runs inside an event-triggered runtime that captures stdout,
    so there are no file handlers: one line per record, JSON by default.

    Args:
        name: Logger name to return
        level: Root log level (default: INFO)
        json_format: Use JSON lines (default: True), otherwise console format
        suppress_noisy: Quiet down HTTP and Kafka client loggers
        request_id: Invocation identifier for context

    Returns:
        Configured logger instance
    """
    if request_id:
        set_log_context(request_id=request_id)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if suppress_noisy:
        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger = logging.getLogger(name)
    logger.debug(
        "Logging initialized: stdout-only mode",
        extra={"stage": "startup"},
    )
    return logger
