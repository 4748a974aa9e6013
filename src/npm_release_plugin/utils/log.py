"""
Logging setup for the plugin.

Console loggers built on structlog, scoped per component.
"""

import logging
import sys
from functools import lru_cache
from typing import Any

import structlog
from structlog.types import Processor

_CONFIG: dict[str, Any] = {
    "level": "INFO",
    "colors": True,
}


def configure_logging(level: str | None = None, colors: bool | None = None) -> None:
    """
    Configure the plugin loggers.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        colors: Whether to use colors in console output
    """
    if level is not None:
        _CONFIG["level"] = level.upper()
    if colors is not None:
        _CONFIG["colors"] = colors
    get_logger.cache_clear()


def _get_processors() -> list[Processor]:
    return [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(colors=_CONFIG["colors"]),
    ]


@lru_cache(maxsize=32)
def get_logger(scope: str) -> structlog.typing.FilteringBoundLogger:
    """Get a scoped logger for a component.

    Args:
        scope: The name/scope for the logger (e.g., "npm-release", "auth")

    Returns:
        Bound logger writing to stderr
    """
    level = logging.getLevelName(_CONFIG["level"])
    if not isinstance(level, int):
        level = logging.INFO

    return structlog.wrap_logger(
        structlog.PrintLogger(file=sys.stderr),
        processors=_get_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    ).bind(component=scope)
