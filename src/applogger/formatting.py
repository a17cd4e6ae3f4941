from __future__ import annotations

"""
Record Formatting.

Turns one log event into one line:

    <timestamp> | <label> | <message> |              (no payload)
    <timestamp> | <label> | <message> | <payload>    (payload as compact JSON)
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from applogger.errors import FormatError
from applogger.levels import Severity
from applogger.timestamps import TimestampFormat

SEPARATOR: str = " | "


def serialize_payload(payload: Any) -> Optional[str]:
    """
    Serialize a structured payload as compact JSON text.

    Args:
        payload: Any JSON-compatible value, or None for "no payload".

    Returns:
        Optional[str]: The serialized payload, or None when absent.

    Raises:
        FormatError: If the payload cannot be represented as JSON.
    """
    if payload is None:
        return None
    try:
        # NaN and Infinity have no JSON representation
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise FormatError(f"Payload of type {type(payload).__name__} is not serializable: {e}") from e


def render_line(severity: Severity, message: Any, payload_text: Optional[str], timestamp: str) -> str:
    line = f"{timestamp}{SEPARATOR}{severity.label}{SEPARATOR}{message}"
    if payload_text is not None:
        return f"{line}{SEPARATOR}{payload_text}"
    return f"{line} |"


class RecordFormatter(logging.Formatter):
    """
    logging.Formatter producing the pipe-separated line.

    The timestamp is taken when the record is formatted, i.e. at emission
    time, in the configured locale. Records must carry `severity` and
    `payload_text` attributes (set by the logger facade).
    """

    def __init__(
            self,
            timestamps: TimestampFormat,
            clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__()
        self.timestamps = timestamps
        self.clock = clock

    def format(self, record: logging.LogRecord) -> str:
        severity = getattr(record, "severity", None)
        if not isinstance(severity, Severity):
            raise FormatError(f"Record {record.name!r} carries no severity")
        return render_line(
            severity,
            record.getMessage(),
            getattr(record, "payload_text", None),
            self.timestamps.format(self.clock()),
        )
