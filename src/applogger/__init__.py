from __future__ import annotations

from .config import LoggerConfig, Retention, load_config, parse_retention, parse_size
from .core import AppLogger, LoggerState
from .dispatch import DeliveryReport
from .errors import (
    AppLoggerError,
    ClosedStateError,
    ConfigurationError,
    FormatError,
    SinkWriteError,
)
from .formatting import RecordFormatter, render_line, serialize_payload
from .levels import Severity, is_enabled, parse_severity, rank
from .routes import derive_route
from .timestamps import TimestampFormat, format_timestamp

__version__ = "1.0.0"

__all__ = [
    "AppLogger",
    "AppLoggerError",
    "ClosedStateError",
    "ConfigurationError",
    "DeliveryReport",
    "FormatError",
    "LoggerConfig",
    "LoggerState",
    "RecordFormatter",
    "Retention",
    "Severity",
    "SinkWriteError",
    "TimestampFormat",
    "derive_route",
    "format_timestamp",
    "is_enabled",
    "load_config",
    "parse_retention",
    "parse_severity",
    "parse_size",
    "rank",
    "render_line",
    "serialize_payload",
]
