from __future__ import annotations

"""
Logger Facade.

AppLogger owns a configuration, derives its route once, and routes every
admitted call to its current sink set through a SinkDispatcher. Every log
call returns a concurrent.futures.Future resolving to a DeliveryReport.

Reconfiguration builds a complete new generation (formatter, sinks,
dispatcher) before swapping it in under the logger lock; the previous
generation is then drained and closed. A failed rebuild leaves the previous
generation untouched.
"""

import atexit
import logging
import threading
from concurrent.futures import Future
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, TextIO, Union

from applogger.config import LoggerConfig
from applogger.dispatch import DeliveryReport, SinkDispatcher
from applogger.errors import ClosedStateError, ConfigurationError, FormatError
from applogger.formatting import RecordFormatter, serialize_payload
from applogger.handlers import build_sinks
from applogger.levels import Severity, is_enabled, parse_severity
from applogger.routes import derive_route
from applogger.timestamps import TimestampFormat

logger = logging.getLogger(__name__)

ConfigInput = Union[LoggerConfig, Mapping[str, Any], None]


class LoggerState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class _Generation:
    """Everything built from one configuration snapshot."""

    def __init__(self, cfg: LoggerConfig, dispatcher: SinkDispatcher) -> None:
        self.config = cfg
        self.threshold: Severity = cfg.severity
        self.dispatcher = dispatcher


class AppLogger:
    """
    Leveled logger writing pipe-separated lines to console and file sinks.

    Args:
        name: Logical module name; prefixes the route and file names.
        config: A LoggerConfig or a partial mapping (snake_case or legacy keys).
        console_stream: Stream for the console sink (default: stdout).
        clock: Source of the current local time.
        **overrides: Individual configuration fields.

    Raises:
        ConfigurationError: If the configuration is invalid or the log
            directory cannot be used.
    """

    def __init__(
            self,
            name: str,
            config: ConfigInput = None,
            *,
            console_stream: Optional[TextIO] = None,
            clock: Callable[[], datetime] = datetime.now,
            **overrides: Any,
    ) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Invalid logger name {name!r}")

        self.name = name
        self._state = LoggerState.UNINITIALIZED
        self._lock = threading.RLock()
        self._console_stream = console_stream
        self._clock = clock

        cfg = _resolve_config(config, overrides)
        self.route = derive_route(name, clock())
        self._generation = self._build_generation(cfg)
        self._state = LoggerState.READY

        atexit.register(self.close)
        logger.debug(f"Logger {self.route!r} ready")

    # --------------------------------------------------------------------------
    # Logging API
    # --------------------------------------------------------------------------

    def log(self, level: Union[str, Severity], message: Any, payload: Any = None) -> Future:
        """
        Emit one record at `level`.

        Returns:
            Future: Resolves to a DeliveryReport once every sink was tried.
            Fails with FormatError if the payload cannot be serialized, or
            with SinkWriteError (carrying the partial report) if a sink failed.

        Raises:
            ConfigurationError: If `level` is not a known severity.
            ClosedStateError: If the logger was closed.
        """
        severity = parse_severity(level)
        completion: Future = Future()

        with self._lock:
            self._ensure_open()
            generation = self._generation
            if not is_enabled(severity, generation.threshold):
                completion.set_result(DeliveryReport.filtered())
                return completion

            try:
                text = _coerce_message(message)
                payload_text = serialize_payload(payload)
            except FormatError as e:
                completion.set_exception(e)
                return completion

            generation.dispatcher.submit(self._make_record(severity, text, payload_text, completion))
        return completion

    def exception(self, message: Any, payload: Any = None) -> Future:
        return self.log(Severity.EXCEPTION, message, payload)

    def error(self, message: Any, payload: Any = None) -> Future:
        return self.log(Severity.ERROR, message, payload)

    def warn(self, message: Any, payload: Any = None) -> Future:
        return self.log(Severity.WARN, message, payload)

    def info(self, message: Any, payload: Any = None) -> Future:
        return self.log(Severity.INFO, message, payload)

    def http(self, message: Any, payload: Any = None) -> Future:
        return self.log(Severity.HTTP, message, payload)

    def trace(self, message: Any, payload: Any = None) -> Future:
        return self.log(Severity.TRACE, message, payload)

    def debug(self, message: Any, payload: Any = None) -> Future:
        return self.log(Severity.DEBUG, message, payload)

    # --------------------------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------------------------

    @property
    def state(self) -> LoggerState:
        return self._state

    @property
    def log_files(self) -> List[str]:
        """Paths of the files currently written by this logger."""
        with self._lock:
            return [
                sink.baseFilename
                for sink in self._generation.dispatcher.sinks
                if isinstance(sink, logging.FileHandler)
            ]

    def get_config(self) -> LoggerConfig:
        """Return the active configuration (an immutable snapshot)."""
        with self._lock:
            return self._generation.config

    def update_config(self, changes: Optional[Mapping[str, Any]] = None, **fields: Any) -> None:
        """
        Merge fields into the configuration and rebuild every sink.

        The route is not re-derived. Calls issued before the swap are written
        by the previous sinks, which are drained and closed afterwards.

        Raises:
            ConfigurationError: If the merged configuration is invalid; the
                previous configuration and sinks stay active.
            ClosedStateError: If the logger was closed.
        """
        with self._lock:
            self._ensure_open()
            cfg = self._generation.config.merge(changes, **fields)
            fresh = self._build_generation(cfg)
            previous, self._generation = self._generation, fresh

        previous.dispatcher.shutdown()
        logger.debug(f"Logger {self.route!r} reconfigured")

    def close(self) -> None:
        """
        Drain pending writes, then flush and release every sink.

        Calling close() more than once is a no-op.
        """
        with self._lock:
            if self._state is LoggerState.CLOSED:
                return
            self._state = LoggerState.CLOSED
            generation = self._generation

        generation.dispatcher.shutdown()
        atexit.unregister(self.close)
        logger.debug(f"Logger {self.route!r} closed")

    def __enter__(self) -> "AppLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<AppLogger route={self.route!r} state={self._state.value}>"

    # --------------------------------------------------------------------------
    # Private helpers
    # --------------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._state is LoggerState.CLOSED:
            raise ClosedStateError(f"Logger {self.route!r} is closed")

    def _build_generation(self, cfg: LoggerConfig) -> _Generation:
        cfg.validate()
        formatter = RecordFormatter(TimestampFormat.for_locale(cfg.date_locale), clock=self._clock)
        sinks = build_sinks(
            cfg,
            self.name,
            self.route,
            formatter,
            console_stream=self._console_stream,
            clock=self._clock,
        )
        dispatcher = SinkDispatcher(sinks)
        dispatcher.start()
        return _Generation(cfg, dispatcher)

    def _make_record(
            self,
            severity: Severity,
            message: str,
            payload_text: Optional[str],
            completion: Future,
    ) -> logging.LogRecord:
        return logging.makeLogRecord({
            "name": self.route,
            "levelno": severity.levelno,
            "levelname": severity.name,
            "msg": message,
            "args": None,
            "severity": severity,
            "payload_text": payload_text,
            "completion": completion,
        })


def _resolve_config(config: ConfigInput, overrides: Mapping[str, Any]) -> LoggerConfig:
    if isinstance(config, LoggerConfig):
        return config.merge(overrides)
    if config is None or isinstance(config, Mapping):
        return LoggerConfig.from_mapping(config, **overrides)
    raise ConfigurationError(f"Unsupported configuration type {type(config).__name__}")


def _coerce_message(message: Any) -> str:
    try:
        return str(message)
    except Exception as e:
        raise FormatError(f"Message of type {type(message).__name__} cannot be rendered: {e}") from e
