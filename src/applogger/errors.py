from __future__ import annotations

"""
Exception Taxonomy.

Every error raised by the logger derives from AppLoggerError. Construction
and reconfiguration failures are raised synchronously; per-call failures
(FormatError, SinkWriteError) are delivered through the call's future.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from applogger.dispatch import DeliveryReport


class AppLoggerError(Exception):
    """Base class for all logger errors."""


class ConfigurationError(AppLoggerError, ValueError):
    """Invalid severity, locale, size/retention value or unusable log directory."""


class FormatError(AppLoggerError):
    """The payload of a single log call could not be serialized."""


class SinkWriteError(AppLoggerError):
    """
    An output sink failed to accept a line.

    Attributes:
        sink: Name of the failing sink when raised by a single sink.
        report: Delivery report of the whole call when raised on a future.
    """

    def __init__(
            self,
            message: str,
            *,
            sink: Optional[str] = None,
            report: Optional["DeliveryReport"] = None,
    ) -> None:
        super().__init__(message)
        self.sink = sink
        self.report = report


class ClosedStateError(AppLoggerError, RuntimeError):
    """The logger was used after close()."""
