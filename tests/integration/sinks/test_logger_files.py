from __future__ import annotations

"""
Integration tests for the logger facade writing single log files.

Verifies:
1. The end-to-end file scenario and line format.
2. Threshold filtering before and after reconfiguration.
3. Configuration snapshots, failed rebuilds and the closed state.
4. Per-call FormatError and partial SinkWriteError reporting.
5. Concurrent callers never interleave lines.
"""

import io
import os
import re
import threading
from datetime import datetime

import pytest

from applogger import (
    AppLogger,
    ClosedStateError,
    ConfigurationError,
    FormatError,
    LoggerConfig,
    LoggerState,
    SinkWriteError,
)
from applogger.levels import Severity, is_enabled

LINE_RE = re.compile(r"^\d{2}\.\d{2}\.\d{4}, \d{2}:\d{2}:\d{2} \|\s+INFO \| start \|$")
TIMEOUT = 5


def _read_lines(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return f.read().splitlines()


def _path(logger: AppLogger) -> str:
    return os.path.join(logger.get_config().log_path, f"{logger.route}.log")


def test_end_to_end_single_file(tmp_path) -> None:
    """A non-rotating logger writes '<name>-<YYYYMMDD>.log' with one formatted line."""
    log_dir = tmp_path / "t"
    logger = AppLogger("svc", {"file_rotation": False, "log_path": str(log_dir), "console": False})
    logger.info("start").result(timeout=TIMEOUT)
    logger.close()

    expected = log_dir / f"svc-{datetime.now():%Y%m%d}.log"
    assert expected.exists()
    lines = _read_lines(str(expected))
    assert len(lines) == 1
    assert LINE_RE.match(lines[0]), lines[0]


def test_log_directory_is_created_recursively(make_logger, tmp_path) -> None:
    target = tmp_path / "a" / "b" / "c"
    make_logger(log_path=str(target))
    assert target.is_dir()


def test_route_and_filename_use_clock(make_logger, clock, tmp_path) -> None:
    logger = make_logger("sensor", clock=clock)
    assert logger.route == "sensor-20250526"
    assert logger.log_files == [str(tmp_path / "logs" / "sensor-20250526.log")]


def test_payload_is_written_as_compact_json(make_logger, clock) -> None:
    logger = make_logger(clock=clock)
    logger.info("Temp ok", {"temp": 25.5}).result(timeout=TIMEOUT)
    logger.close()

    assert _read_lines(_path(logger)) == [
        '26.05.2025, 10:00:00 |      INFO | Temp ok | {"temp":25.5}'
    ]


def test_filtered_calls_resolve_without_writing(make_logger) -> None:
    logger = make_logger(level="error")

    skipped = logger.debug("not written").result(timeout=TIMEOUT)
    written = logger.exception("written").result(timeout=TIMEOUT)
    logger.close()

    assert skipped.emitted is False
    assert skipped.delivered == ()
    assert written.emitted is True
    assert written.delivered == ("file",)
    lines = _read_lines(_path(logger))
    assert len(lines) == 1
    assert "EXCEPTION | written |" in lines[0]


@pytest.mark.parametrize("threshold", ["exception", "error", "warn", "info", "http", "trace", "debug"])
def test_every_level_respects_threshold(make_logger, threshold) -> None:
    logger = make_logger(level=threshold)
    for severity in Severity:
        method = getattr(logger, severity.level_name)
        report = method(f"{severity.level_name} message").result(timeout=TIMEOUT)
        assert report.emitted is is_enabled(severity, threshold)
    logger.close()

    expected = sum(1 for s in Severity if is_enabled(s, threshold))
    assert len(_read_lines(_path(logger))) == expected


def test_generic_log_accepts_level_names(make_logger) -> None:
    logger = make_logger(level="debug")
    report = logger.log("TRACE", "via generic call").result(timeout=TIMEOUT)
    assert report.ok

    with pytest.raises(ConfigurationError):
        logger.log("verbose", "unknown level")


def test_update_config_raises_threshold(make_logger) -> None:
    logger = make_logger(level="debug")
    logger.update_config({"level": "error"})

    assert logger.debug("suppressed").result(timeout=TIMEOUT).emitted is False
    report = logger.error("kept").result(timeout=TIMEOUT)
    assert report.delivered == ("file",)
    logger.close()

    lines = _read_lines(_path(logger))
    assert len(lines) == 1
    assert "ERROR | kept |" in lines[0]


def test_update_config_keeps_route_and_moves_file(make_logger, tmp_path) -> None:
    logger = make_logger()
    route = logger.route
    new_dir = tmp_path / "moved"

    logger.update_config(log_path=str(new_dir))
    logger.info("after move").result(timeout=TIMEOUT)

    assert logger.route == route
    assert logger.log_files == [str(new_dir / f"{route}.log")]


def test_get_config_snapshots_are_stable(make_logger) -> None:
    logger = make_logger()
    first = logger.get_config()
    second = logger.get_config()

    assert first == second
    assert isinstance(first, LoggerConfig)
    first.to_dict()["level"] = "debug"
    assert logger.get_config().level == "info"


def test_failed_rebuild_keeps_previous_state(make_logger) -> None:
    logger = make_logger()
    before = logger.get_config()

    with pytest.raises(ConfigurationError):
        logger.update_config(level="verbose")
    with pytest.raises(ConfigurationError):
        logger.update_config(date_locale="zz-ZZ")

    assert logger.get_config() == before
    assert logger.info("still alive").result(timeout=TIMEOUT).ok


def test_unwritable_directory_fails_construction(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        AppLogger("svc", log_path=str(blocker / "logs"), console=False)


def test_unwritable_directory_fails_rebuild(make_logger, tmp_path) -> None:
    logger = make_logger()
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        logger.update_config(log_path=str(blocker / "logs"))
    assert logger.info("previous sinks still work").result(timeout=TIMEOUT).ok


def test_calls_after_close_fail(make_logger) -> None:
    logger = make_logger()
    logger.close()

    assert logger.state is LoggerState.CLOSED
    with pytest.raises(ClosedStateError):
        logger.info("too late")
    with pytest.raises(ClosedStateError):
        logger.update_config(level="debug")
    logger.close()


def test_close_drains_pending_writes(make_logger) -> None:
    logger = make_logger()
    futures = [logger.info(f"line {i}") for i in range(200)]
    logger.close()

    assert all(f.done() for f in futures)
    assert len(_read_lines(_path(logger))) == 200


def test_update_config_drains_previous_sinks(make_logger) -> None:
    logger = make_logger()
    before = [logger.info(f"before {i}") for i in range(200)]
    logger.update_config(level="debug")

    assert all(f.done() for f in before)
    assert all(f.result().delivered == ("file",) for f in before)

    after = [logger.debug(f"after {i}") for i in range(5)]
    for f in after:
        f.result(timeout=TIMEOUT)
    logger.close()

    lines = _read_lines(_path(logger))
    assert len(lines) == 205
    assert all(line.endswith(f"INFO | before {i} |") for i, line in enumerate(lines[:200]))
    assert all("DEBUG | after" in line for line in lines[200:])


def test_unhashable_locale_fails_construction(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        AppLogger("svc", log_path=str(tmp_path), console=False, date_locale=["de-DE"])


def test_context_manager_closes(tmp_path) -> None:
    with AppLogger("ctx", log_path=str(tmp_path), console=False) as logger:
        logger.warn("inside")
    assert logger.state is LoggerState.CLOSED


def test_unserializable_payload_fails_only_that_call(make_logger) -> None:
    logger = make_logger()

    failed = logger.info("bad payload", {"values": {1, 2, 3}})
    ok = logger.info("good payload", {"values": [1, 2, 3]})

    assert isinstance(failed.exception(timeout=TIMEOUT), FormatError)
    assert ok.result(timeout=TIMEOUT).ok
    logger.close()

    lines = _read_lines(_path(logger))
    assert len(lines) == 1
    assert lines[0].endswith('good payload | {"values":[1,2,3]}')


def test_message_is_coerced_to_text(make_logger) -> None:
    logger = make_logger()
    logger.info(42).result(timeout=TIMEOUT)
    logger.close()
    assert "| 42 |" in _read_lines(_path(logger))[0]


def test_partial_sink_failure_is_reported(make_logger) -> None:
    stream = io.StringIO()
    logger = make_logger(console=True, console_stream=stream)
    file_sink = next(s for s in logger._generation.dispatcher.sinks if s.get_name() == "file")
    file_sink.stream.close()

    future = logger.error("disk trouble")
    error = future.exception(timeout=TIMEOUT)

    assert isinstance(error, SinkWriteError)
    assert error.report.delivered == ("console",)
    assert list(error.report.failures) == ["file"]
    assert "disk trouble" in stream.getvalue()


def test_concurrent_callers_do_not_interleave(make_logger) -> None:
    logger = make_logger()

    def worker(n: int) -> None:
        for i in range(50):
            logger.info(f"worker-{n} line-{i}", {"n": n, "i": i})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    logger.close()

    lines = _read_lines(_path(logger))
    assert len(lines) == 400
    pattern = re.compile(r'^.+ \|      INFO \| worker-(\d) line-(\d+) \| \{"n":\1,"i":\2\}$')
    assert all(pattern.match(line) for line in lines)
