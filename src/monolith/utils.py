# src/monolith/utils.py
"""Logging and datetime helpers shared by every Monolith module.

Log records are single-line JSON objects on the ``monolith`` logger, so they
can be shipped to any log pipeline without a custom formatter. This module
imports nothing from the rest of the package.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

#: Extra fields for a log event; anything json.dumps (or str) can render
LogFields = Any

# Longest error message written to a log line or wide event
ERROR_MESSAGE_MAX_LENGTH = 200

# =============================================================================
# Structured Logging
# =============================================================================

_logger = logging.getLogger("monolith")

if not _logger.handlers:
    _stream = logging.StreamHandler()
    _stream.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(_stream)
    _logger.setLevel(logging.INFO)
    # Records still propagate to the root logger (pytest's caplog relies on it)


def get_logger() -> logging.Logger:
    """Return the package logger."""
    return _logger


def get_iso_timestamp() -> str:
    """Current UTC time in RFC 3339 form, e.g. ``2026-01-17T12:00:00Z``."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _write(level: int, event_type: str, fields: dict[str, LogFields]) -> None:
    record = {"event_type": event_type, "timestamp": get_iso_timestamp(), **fields}
    _logger.log(level, json.dumps(record, default=str))


def log_op(event_type: str, **fields: LogFields) -> None:
    """Write an INFO event, e.g. ``log_op("svg_load", path=...)``."""
    _write(logging.INFO, event_type, fields)


def truncate_error(error: str | Exception, max_length: int = ERROR_MESSAGE_MAX_LENGTH) -> str:
    """Shorten an error message to max_length, ending in "..." if it was cut."""
    message = str(error)
    if len(message) > max_length:
        message = message[: max_length - 3] + "..."
    return message


def log_error(event_type: str, exception: Exception, **fields: LogFields) -> None:
    """Write an ERROR event describing an exception.

    The exception class name goes in ``error_type`` and its (truncated)
    message in ``error``.
    """
    details = {
        "error_type": type(exception).__name__,
        "error": truncate_error(exception),
    }
    _write(logging.ERROR, event_type, {**details, **fields})


# =============================================================================
# Datetime Helpers
# =============================================================================


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def parse_iso_datetime(iso_string: str | None) -> datetime | None:
    """Parse ISO 8601 text into an aware datetime, or None if it is not ISO 8601.

    Accepts a trailing ``Z``, an explicit offset, or no zone at all (UTC is
    assumed). A bare date means midnight UTC.
    """
    if not iso_string:
        return None

    try:
        parsed = datetime.fromisoformat(iso_string.strip().replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None

    return ensure_aware(parsed)
