from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. A controllable clock and a logger factory that closes what it opens.
"""

import io
import os
import sys
from datetime import datetime, timedelta
from typing import Any, Callable, Generator, List

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from applogger import AppLogger  # noqa: E402


class FakeClock:
    """Callable returning a settable local time."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def advance(self, **delta: Any) -> None:
        self.moment += timedelta(**delta)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at 2025-05-26 10:00:00 local time."""
    return FakeClock(datetime(2025, 5, 26, 10, 0, 0))


@pytest.fixture
def console_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def make_logger(tmp_path: Any) -> Generator[Callable[..., AppLogger], None, None]:
    """
    Factory for loggers writing under tmp_path.

    Defaults to no console output; every logger built is closed on teardown.
    """
    created: List[AppLogger] = []

    def _factory(name: str = "svc", **kwargs: Any) -> AppLogger:
        kwargs.setdefault("log_path", str(tmp_path / "logs"))
        kwargs.setdefault("console", False)
        instance = AppLogger(name, **kwargs)
        created.append(instance)
        return instance

    yield _factory

    for instance in created:
        instance.close()
