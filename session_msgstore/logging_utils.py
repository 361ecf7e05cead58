"""
Structured logging for message stores.

Stores log through the standard ``logging`` module under the
``session_msgstore`` logger tree. Records carry store context as extras:
``session_id`` (stamped by StoreLoggerAdapter), and ``path`` or
``operation`` where a file or database call is involved.

For log collectors, configure_structured_logging() renders those records
as single-line JSON with the store context at the top level.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

from .exceptions import MessageStoreError

ROOT_LOGGER = "session_msgstore"

# Extras promoted to top-level JSON fields; anything else goes under "context"
STORE_FIELDS = ("session_id", "operation", "path")

# Attributes every LogRecord has, whether or not the caller passed extras
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredJsonFormatter(logging.Formatter):
    """
    Render a record as one JSON object per line.

    Fields:
    - timestamp, level, logger, message
    - session_id / operation / path when the record carries them
    - context: any other caller-supplied extras
    - exception, plus error_details for MessageStoreError
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in STORE_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = _jsonable(value)

        context = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in STORE_FIELDS and not key.startswith("_")
        }
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
            error = record.exc_info[1]
            if isinstance(error, MessageStoreError):
                entry["error_details"] = {k: _jsonable(v) for k, v in error.details.items()}

        return json.dumps(entry, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str = ROOT_LOGGER,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """
    Send store logs to a stream as structured JSON.

    Calling this again replaces the JSON handler installed by an earlier
    call; handlers added by the application are left in place.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger tree to configure (default: the package logger)
        stream: Destination (default: stderr, so command output stays clean)

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, StructuredJsonFormatter):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(StructuredJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


class StoreLoggerAdapter(logging.LoggerAdapter):
    """Stamps a store's session id on every record it emits."""

    def __init__(self, logger: logging.Logger, session_id: str):
        super().__init__(logger, {"session_id": session_id})
        self.session_id = session_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        # Copy so the caller's extra dict is never modified
        kwargs["extra"] = {**kwargs.get("extra", {}), "session_id": self.session_id}
        return msg, kwargs


def get_store_logger(name: str, session_id: str) -> StoreLoggerAdapter:
    """
    Get a session-stamped logger for a store module.

    Args:
        name: Module name, normally ``__name__``
        session_id: Session the store is bound to

    Returns:
        Adapter over ``logging.getLogger(name)``
    """
    return StoreLoggerAdapter(logging.getLogger(name), session_id)
