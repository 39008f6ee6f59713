"""
Logging utilities for session authentication.

Provides an AuthLogger that records auth lifecycle events through the
standard logging module, plus JSON-lines output for log collectors.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

from .config import AuthConfig
from .events import AuthLogEvent, AuthLogger

# LogRecord attributes that `extra` may not overwrite
RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

# Promoted to the top level of a JSON line; other extras go under "context"
EVENT_FIELDS = ("event_name", "event_type", "user_id")

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class StructuredJsonFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Every line has timestamp (UTC, from the record itself), level, logger
    and message. Records written by LoggingAuthLogger also carry
    event_name, event_type and user_id at the top level. Remaining extra
    fields, such as the uauth_* user parameters, are grouped under
    "context". Values json cannot encode are written as strings.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in RESERVED_ATTRS and not key.startswith("_")
        }
        for key in EVENT_FIELDS:
            if key in context:
                entry[key] = context.pop(key)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class _AuthLogHandler(logging.StreamHandler):
    """Marks handlers installed here so reconfiguring replaces only them."""


def _install_handler(
    logger: logging.Logger,
    formatter: logging.Formatter,
    level: int,
    stream: TextIO,
) -> logging.Logger:
    for handler in [h for h in logger.handlers if isinstance(h, _AuthLogHandler)]:
        logger.removeHandler(handler)

    handler = _AuthLogHandler(stream)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Write records of `logger_name` as JSON lines.

    Calling this again swaps the handler it installed earlier. Handlers the
    application added itself are kept.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure (default: root logger)
        stream: Output stream (default: stdout)

    Returns:
        The configured logger
    """
    return _install_handler(
        logging.getLogger(logger_name), StructuredJsonFormatter(), level, stream or sys.stdout
    )


def configure_logging(config: AuthConfig, logger_name: str | None = None) -> logging.Logger:
    """Set up logging as described by an AuthConfig."""
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    if config.structured_logging:
        return configure_structured_logging(level, logger_name)
    return _install_handler(
        logging.getLogger(logger_name), logging.Formatter(PLAIN_FORMAT), level, sys.stderr
    )


def get_auth_logger(name: str) -> logging.Logger:
    """
    Get a logger for auth components with consistent naming.

    Args:
        name: Component name (e.g., 'manager', 'events')

    Returns:
        Logger instance with name 'session_auth.{name}'
    """
    return logging.getLogger(f"session_auth.{name}")


class LoggingAuthLogger(AuthLogger):
    """
    AuthLogger that writes auth events to a standard library logger.

    Event parameters, the identified user and user properties are passed
    as `extra`, so StructuredJsonFormatter emits them as JSON fields.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or get_auth_logger("events")
        self.user_id: str | None = None
        self.user_properties: dict[str, Any] = {}

    def identify_user(self, user_id: str, name: str | None, email: str | None) -> None:
        self.user_id = user_id
        self.logger.debug(
            f"Identified user {user_id}",
            extra={"user_id": user_id, "user_name": name, "user_email": email},
        )

    def track_event(self, event: AuthLogEvent) -> None:
        extra: dict[str, Any] = {"event_name": event.event_name, "event_type": event.type.as_string}
        if self.user_id:
            extra["user_id"] = self.user_id
        for key, value in (event.parameters or {}).items():
            if key not in RESERVED_ATTRS:
                extra[key] = value

        self.logger.log(event.type.log_level, f"{event.type.emoji} {event.event_name}", extra=extra)

    def add_user_properties(self, properties: dict[str, Any], is_high_priority: bool) -> None:
        self.user_properties.update(properties)
        self.logger.debug(
            "Updated user properties",
            extra={"property_count": len(properties), "high_priority": is_high_priority},
        )
