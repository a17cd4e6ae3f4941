from __future__ import annotations

"""
Severity Model.

Defines the closed, ordered set of seven severities. Lower rank means more
severe. The table is immutable and owned by this module; nothing is
registered into the standard library's global level registry.
"""

import logging
from enum import Enum
from typing import Dict, Union

from applogger.errors import ConfigurationError

LABEL_WIDTH: int = 9


class Severity(Enum):
    """
    Log severity with its rank, console color and stdlib level number.

    The value tuple is (rank, color, stdlib_levelno).
    """
    EXCEPTION = (0, "red bold", logging.CRITICAL)
    ERROR = (1, "red", logging.ERROR)
    WARN = (2, "yellow", logging.WARNING)
    INFO = (3, "green", logging.INFO)
    HTTP = (4, "magenta", 15)
    TRACE = (5, "cyan", 12)
    DEBUG = (6, "blue", logging.DEBUG)

    def __init__(self, rank: int, color: str, levelno: int) -> None:
        self.rank = rank
        self.color = color
        self.levelno = levelno

    @property
    def level_name(self) -> str:
        """Lower-case name used in configuration and method names."""
        return self.name.lower()

    @property
    def label(self) -> str:
        """Upper-case name right-justified to a fixed column width."""
        return self.name.rjust(LABEL_WIDTH)


_BY_NAME: Dict[str, Severity] = {s.level_name: s for s in Severity}


def parse_severity(value: Union[str, Severity]) -> Severity:
    """
    Resolve a severity from its name (case-insensitive) or pass one through.

    Raises:
        ConfigurationError: If the name is not one of the seven levels.
    """
    if isinstance(value, Severity):
        return value
    key = str(value).strip().lower() if value is not None else ""
    try:
        return _BY_NAME[key]
    except KeyError:
        valid = ", ".join(severity_names())
        raise ConfigurationError(f"Unknown severity {value!r}; expected one of: {valid}") from None


def rank(level: Union[str, Severity]) -> int:
    return parse_severity(level).rank


def is_enabled(level: Union[str, Severity], threshold: Union[str, Severity]) -> bool:
    """Return True if `level` passes a filter configured at `threshold`."""
    return rank(level) <= rank(threshold)


def severity_names() -> tuple:
    """Level names ordered from most to least severe."""
    return tuple(_BY_NAME)
