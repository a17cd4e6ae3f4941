from __future__ import annotations

"""
Sink Dispatch.

One SinkDispatcher exists per configuration generation of a logger. It is a
QueueListener whose worker thread writes every queued record to each sink
in turn and resolves the record's future with a DeliveryReport. Stopping
the dispatcher drains the queue first, so no accepted call is lost.
"""

import logging
import queue
from concurrent.futures import Future
from dataclasses import dataclass, field
from logging.handlers import QueueListener
from typing import Dict, List, Optional, Tuple

from applogger.errors import SinkWriteError
from applogger.handlers import close_sinks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryReport:
    """
    Outcome of one log call.

    Attributes:
        emitted: False when the record was filtered out by the threshold.
        delivered: Names of the sinks that accepted the line.
        failures: Sink name to the error that sink raised.
    """
    emitted: bool = True
    delivered: Tuple[str, ...] = ()
    failures: Dict[str, BaseException] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @classmethod
    def filtered(cls) -> "DeliveryReport":
        return cls(emitted=False)


class SinkDispatcher(QueueListener):
    """
    Single-threaded writer for a fixed set of sinks.

    Records must carry a `completion` attribute holding a
    concurrent.futures.Future; it is resolved after every sink was tried.
    """

    def __init__(self, sinks: List[logging.Handler]) -> None:
        super().__init__(queue.SimpleQueue(), *sinks, respect_handler_level=False)

    @property
    def sinks(self) -> Tuple[logging.Handler, ...]:
        return tuple(self.handlers)

    def submit(self, record: logging.LogRecord) -> None:
        self.queue.put_nowait(record)

    def handle(self, record: logging.LogRecord) -> None:
        completion: Optional[Future] = getattr(record, "completion", None)
        if completion is not None and not completion.set_running_or_notify_cancel():
            return

        delivered: List[str] = []
        failures: Dict[str, BaseException] = {}
        for sink in self.sinks:
            try:
                sink.handle(record)
                delivered.append(sink.get_name())
            except SinkWriteError as e:
                failures[sink.get_name()] = e
            except Exception as e:
                failures[sink.get_name()] = SinkWriteError(str(e), sink=sink.get_name())

        report = DeliveryReport(delivered=tuple(delivered), failures=failures)
        if completion is None:
            return
        if failures:
            failed = ", ".join(failures)
            wrote = ", ".join(delivered) or "none"
            completion.set_exception(
                SinkWriteError(f"Write failed on: {failed} (delivered: {wrote})", report=report)
            )
        else:
            completion.set_result(report)

    def shutdown(self) -> None:
        """Drain the queue, stop the worker thread and close every sink."""
        _safe_stop_listener(self)
        close_sinks(list(self.sinks))
        logger.debug(f"Dispatcher stopped, {len(self.sinks)} sink(s) closed")


def _safe_stop_listener(listener: Optional[QueueListener]) -> None:
    """Stop a QueueListener, tolerating listeners that were never started or already stopped."""
    if not listener:
        return
    if getattr(listener, "_thread", None) is not None:
        listener.stop()
