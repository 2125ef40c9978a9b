"""Structured logging configuration using structlog."""

import logging

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, add_log_level

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_SECRET_KEYS = frozenset({"api_key", "authorization", "token"})


def _redact_secrets(logger, method_name, event_dict):
    """Mask credential-looking fields so they never reach the renderer."""
    for key in _SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def configure_logging(json_output: bool = False, level: str = "INFO") -> None:
    """Configure structlog for the embedding adapter.

    Args:
        json_output: Emit one JSON object per line (production) instead of the
            colored console format (development).
        level: Minimum level name ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL").

    Loggers are not cached, so calling this again also reconfigures
    module-level loggers that have already logged.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    level_name = level.upper()
    if level_name not in _LEVELS:
        raise ValueError(f"Unknown log level: {level!r}")

    processors = [
        merge_contextvars,
        add_log_level,
        _redact_secrets,
        TimeStamper(fmt="iso"),
        JSONRenderer() if json_output else ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS[level_name]),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str):
    """Return a structlog logger bound to ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)
