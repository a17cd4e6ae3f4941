from __future__ import annotations

"""
Output Sinks.

Provides the logging.Handler subclasses used as sinks (colored console,
single append-only file, daily rotating file family) and the factory that
builds a sink set from a configuration. Sinks raise SinkWriteError from
handleError instead of printing to stderr, so the dispatcher can report
the failure on the originating call.
"""

import logging
import os
import sys
from datetime import date, datetime, timedelta
from logging.handlers import BaseRotatingHandler
from typing import Callable, List, Optional, TextIO, Tuple

from rich.console import Console

from applogger.config import LoggerConfig, Retention
from applogger.errors import ConfigurationError, SinkWriteError
from applogger.formatting import RecordFormatter
from applogger.routes import (
    parse_family_member,
    rotating_file_path,
    rotation_family_pattern,
    single_file_path,
)

logger = logging.getLogger(__name__)

CONSOLE_SINK: str = "console"
FILE_SINK: str = "file"


# ==============================================================================
# SINKS
# ==============================================================================

class _RaisingHandlerMixin:
    """Turn the stdlib's print-to-stderr error handling into SinkWriteError."""

    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        if isinstance(exc, SinkWriteError):
            raise exc
        raise SinkWriteError(f"Sink {self.get_name()!r} failed: {exc}", sink=self.get_name()) from exc


class ConsoleSink(_RaisingHandlerMixin, logging.Handler):
    """
    Colored console output through rich.

    Each line is printed verbatim (no markup, emoji or highlighting) in the
    color of its severity. Completion means the console has written the line.

    The console is a display surface: rich expands tabs to spaces and drops
    terminal control characters, so a console line can differ from the file
    line in whitespace. File sinks keep the message text unchanged.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        super().__init__()
        # file=None lets rich resolve sys.stdout at write time
        self.console = Console(file=stream, highlight=False, markup=False, emoji=False, soft_wrap=True)
        self.set_name(CONSOLE_SINK)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            style = getattr(getattr(record, "severity", None), "color", None)
            self.console.print(line, style=style)
        except Exception:
            self.handleError(record)


class FileSink(_RaisingHandlerMixin, logging.FileHandler):
    """Single append-only file. Completion means written and flushed to the OS."""

    def __init__(self, filename: str) -> None:
        super().__init__(filename, mode="a", encoding="utf-8")
        self.set_name(FILE_SINK)


class DailyRotatingFileSink(_RaisingHandlerMixin, BaseRotatingHandler):
    """
    Daily rotating file family "<name>-<YYYY-MM-DD>[.<n>].log".

    A new member is opened when the local date changes or when the current
    member would exceed `max_bytes`. After each rollover, members outside the
    retention policy are deleted (by the date in their filename for
    age-based retention, oldest first for count-based retention).
    """

    def __init__(
            self,
            directory: str,
            name: str,
            max_bytes: int = 0,
            retention: Optional[Retention] = None,
            clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.directory = directory
        self.family = name
        self.max_bytes = max_bytes
        self.retention = retention
        self.clock = clock
        self.pattern = rotation_family_pattern(name)

        self.current_day: date = clock().date()
        self.index: int = self._latest_index(self.current_day)
        super().__init__(
            rotating_file_path(directory, name, self.current_day, self.index),
            mode="a",
            encoding="utf-8",
        )
        self.set_name(FILE_SINK)
        self.prune()

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        if self.clock().date() != self.current_day:
            return True
        if self.max_bytes <= 0:
            return False
        if self.stream is None:
            self.stream = self._open()
        self.stream.seek(0, 2)
        position = self.stream.tell()
        if position == 0:
            return False
        msg = f"{self.format(record)}{self.terminator}"
        return position + len(msg.encode(self.encoding or "utf-8")) > self.max_bytes

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        today = self.clock().date()
        if today != self.current_day:
            self.current_day = today
            self.index = self._latest_index(today)
        else:
            self.index += 1

        self.baseFilename = os.path.abspath(
            rotating_file_path(self.directory, self.family, self.current_day, self.index)
        )
        self.stream = self._open()
        self.prune()

    def members(self) -> List[Tuple[date, int, str]]:
        """Existing members of the family as (date, index, path), oldest first."""
        found = []
        try:
            entries = os.listdir(self.directory)
        except OSError:
            return []
        for entry in entries:
            parsed = parse_family_member(self.pattern, entry)
            if parsed:
                found.append((parsed[0], parsed[1], os.path.join(self.directory, entry)))
        return sorted(found)

    def prune(self) -> List[str]:
        """Delete members outside the retention policy; returns removed paths."""
        if self.retention is None:
            return []

        members = self.members()
        current = os.path.abspath(self.baseFilename)
        if self.retention.by_age:
            cutoff = self.current_day - timedelta(days=self.retention.amount)
            expired = [m for m in members if m[0] < cutoff]
        else:
            expired = members[:max(len(members) - self.retention.amount, 0)]

        removed = []
        for _, _, path in expired:
            if os.path.abspath(path) == current:
                continue
            try:
                os.remove(path)
                removed.append(path)
            except OSError as e:
                logger.warning(f"Could not remove expired log file {path}: {e}")
        if removed:
            logger.debug(f"Pruned {len(removed)} expired member(s) of {self.family!r}")
        return removed

    def _latest_index(self, day: date) -> int:
        indices = [index for member_day, index, _ in self.members() if member_day == day]
        return max(indices, default=0)


# ==============================================================================
# FACTORY
# ==============================================================================

def build_sinks(
        cfg: LoggerConfig,
        name: str,
        route: str,
        formatter: RecordFormatter,
        *,
        console_stream: Optional[TextIO] = None,
        clock: Callable[[], datetime] = datetime.now,
) -> List[logging.Handler]:
    """
    Build the sink set of a configuration.

    The log directory is created when absent. If any sink fails to build,
    the ones already opened are closed before ConfigurationError is raised.

    Args:
        cfg: Validated configuration.
        name: Logical logger name (rotating family name).
        route: Route of the logger (single file stem).
        formatter: Shared record formatter.
        console_stream: Optional stream for the console sink (default stdout).
        clock: Source of the current local time.

    Returns:
        List[logging.Handler]: File sink first, then the console sink if enabled.
    """
    log_dir = ensure_log_directory(str(cfg.log_path))
    sinks: List[logging.Handler] = []

    try:
        if cfg.file_rotation:
            sinks.append(DailyRotatingFileSink(log_dir, name, cfg.max_bytes, cfg.retention, clock=clock))
        else:
            sinks.append(FileSink(single_file_path(log_dir, route)))

        if cfg.console:
            sinks.append(ConsoleSink(console_stream))
    except OSError as e:
        close_sinks(sinks)
        raise ConfigurationError(f"Cannot open log file in {log_dir!r}: {e}") from e

    for sink in sinks:
        sink.setFormatter(formatter)
    return sinks


def close_sinks(sinks: List[logging.Handler]) -> None:
    """Flush and close every sink; failures are logged, not raised."""
    for sink in sinks:
        try:
            sink.flush()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to flush sink {sink.get_name()!r}: {e}")
        try:
            sink.close()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to close sink {sink.get_name()!r}: {e}")


def ensure_log_directory(path: str) -> str:
    """
    Create the log directory hierarchy if needed and check it is writable.

    Raises:
        ConfigurationError: If the directory cannot be created or written.
    """
    directory = os.path.abspath(os.path.expanduser(path))
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create log directory {directory!r}: {e}") from e
    if not os.access(directory, os.W_OK):
        raise ConfigurationError(f"Log directory {directory!r} is not writable")
    return directory

