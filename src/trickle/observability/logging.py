"""Structured logging for the trickle faucet.

Features:
- JSON or text format output
- Request ID and caller propagation
- Sensitive data redaction
- Configurable log level
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog

# Context variables for the request being served
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
caller_var: ContextVar[str | None] = ContextVar("caller", default=None)

# Fields that should be redacted (specific names only, so "token" can still
# carry the token contract address)
REDACTED_FIELDS = frozenset(
    {
        "private_key",
        "private_key_file",
        "secret",
        "password",
        "api_key",
        "auth_token",
        "bearer_token",
        "access_token",
    }
)


def _add_request_context(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add request ID and caller to log event if available."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    caller = caller_var.get()
    if caller:
        event_dict.setdefault("caller", caller)
    return event_dict


def _redact_sensitive(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Redact sensitive fields from log events."""
    for key in event_dict:
        if key.lower() in REDACTED_FIELDS:
            event_dict[key] = "[REDACTED]"
    return event_dict


def configure_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Configure structured logging for the application.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR).
    log_format : str
        Output format (json or text).
    """
    try:
        log_level = getattr(logging, level.upper())
    except AttributeError:
        raise ValueError(
            f"Invalid log level: {level!r}. "
            "Valid levels are: DEBUG, INFO, WARNING, ERROR, CRITICAL."
        ) from None

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_request_context,
        _redact_sensitive,
    ]

    if log_format.lower() == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Parameters
    ----------
    name : str | None
        Logger name. If None, uses the calling module's name.

    Returns
    -------
    structlog.stdlib.BoundLogger
        Configured logger instance.
    """
    return structlog.get_logger(name)


def set_request_context(request_id: str, caller: str | None = None) -> None:
    """Set the request ID and caller for the current context.

    Parameters
    ----------
    request_id : str
        The request ID to set.
    caller : str | None
        Address the request is made for, if known.
    """
    request_id_var.set(request_id)
    caller_var.set(caller)


def clear_request_context() -> None:
    """Clear the request ID and caller for the current context."""
    request_id_var.set(None)
    caller_var.set(None)
