"""Logging configuration for collectd-proxy.

Per-sample and per-batch traces are emitted at debug level, so the proxy's
``verbose`` setting lowers the effective level to DEBUG wherever it was set
(command line, environment or YAML file).
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from collectd_proxy.config import Settings, get_settings

# InfluxDB credentials travel as query parameters and settings fields
_REDACTED_KEYS = ("password", "secret", "token", "authorization", "username")


def censor_credentials(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask InfluxDB credentials before rendering."""
    for key in event_dict:
        if any(part in key.lower() for part in _REDACTED_KEYS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def effective_level(settings: Settings) -> int:
    """Stdlib level for the proxy's loggers."""
    if settings.verbose:
        return logging.DEBUG
    return getattr(logging, settings.log_level)


def _handler(settings: Settings) -> logging.Handler:
    if settings.log_file is not None:
        return logging.FileHandler(settings.log_file, encoding="utf-8")
    return logging.StreamHandler(sys.stderr)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the root handler from settings."""
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        censor_credentials,
        structlog.processors.format_exc_info,
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        colors = settings.log_file is None and sys.stderr.isatty()
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        handlers=[_handler(settings)],
        level=effective_level(settings),
        force=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: Exception,
    operation: str,
    **kwargs: Any,
) -> None:
    """Log a failed operation with its exception type and message."""
    logger.error(
        "operation_failed",
        operation=operation,
        error_type=type(error).__name__,
        error_message=str(error),
        exc_info=True,
        **kwargs,
    )
