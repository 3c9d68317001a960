"""
structlog setup for catalog_guard.

Log events go to stderr so the CLI keeps stdout for its results. Module
loggers are created at import time as lazy proxies and resolve against
whatever setup_logging() configured by the time they first log.
"""

import logging
import sys

import structlog
from structlog.types import Processor

# Transport libraries that log every request at INFO
_QUIET_LIBRARIES = ("httpx", "httpcore", "openai")


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structured logging for the CLI.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, render one JSON object per event
    """
    numeric_level = getattr(logging, level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        # Swedish catalog text stays readable in the JSON lines
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None) -> structlog.BoundLogger:
    """Module logger; `name` is attached to every event as `logger_name`."""
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()
