"""Structured logging setup."""

import logging
import sys

import structlog


def setup_logging(log_level: str, colors: bool = True) -> None:
    """
    Configure structured logging.

    Log records go to stderr so they never mix with command output such as
    the resource listing.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR)
        colors: Whether the console renderer may emit ANSI colors
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
