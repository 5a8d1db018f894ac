"""Structured logging setup shared by every module."""
import logging
import sys
from typing import Optional

import structlog

from coverwise.config.request_context import get_correlation_id


def _add_correlation_id(logger, method_name, event_dict):
    """Attach the active request's correlation ID, if any."""
    cid = get_correlation_id()
    if cid and "correlation_id" not in event_dict:
        event_dict["correlation_id"] = cid
    return event_dict


def setup_logging(log_level: str = "INFO", json_output: Optional[bool] = None) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
        log_level: Minimum level name (DEBUG, INFO, ...)
        json_output: Render JSON lines instead of console output.
            Defaults to console output when stderr is a TTY.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if json_output is None:
        json_output = not sys.stderr.isatty()

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_correlation_id,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)
