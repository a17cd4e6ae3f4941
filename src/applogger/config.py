from __future__ import annotations

"""
Logger Configuration Models.

Defines the immutable configuration object of a logger, the parsers for
human-readable size and retention values ("20m", "14d") and the loader for
JSON configuration files. Both snake_case field names and the legacy
camelCase keys (logTracelevel, consoleOutput, ...) are accepted.
"""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, NamedTuple, Optional, Union

from applogger.errors import ConfigurationError
from applogger.levels import Severity, parse_severity
from applogger.timestamps import DEFAULT_LOCALE, TimestampFormat

logger = logging.getLogger(__name__)

# Mapping of legacy configuration keys to dataclass fields
_LEGACY_KEYS: Dict[str, str] = {
    "logTracelevel": "level",
    "consoleOutput": "console",
    "logPath": "log_path",
    "dateLocale": "date_locale",
    "fileRotation": "file_rotation",
    "maxFileSize": "max_file_size",
    "maxFiles": "max_files",
}

_TRUE_STRINGS = {"on", "true", "1", "yes"}
_FALSE_STRINGS = {"off", "false", "0", "no"}

_SIZE_UNITS: Dict[str, int] = {"": 1, "b": 1, "k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}
_SIZE_RE = re.compile(r"^\s*(\d+)\s*([kmgb]?)\s*$", re.IGNORECASE)
_RETENTION_RE = re.compile(r"^\s*(\d+)\s*(d?)\s*$", re.IGNORECASE)


class Retention(NamedTuple):
    """Retention policy of a rotating family: keep `amount` days or files."""
    by_age: bool
    amount: int


@dataclass(frozen=True)
class LoggerConfig:
    """
    Immutable configuration of one logger.

    Attributes:
        level: Minimum severity to emit.
        console: Enable the colored console sink.
        log_path: Directory receiving the log file(s).
        date_locale: Locale used for timestamps.
        file_rotation: Use a daily rotating family instead of a single file.
        max_file_size: Size threshold of a rotating member ("20m", "512k", bytes).
        max_files: Retention of a rotating family ("14d" for days, "14" for files).
    """
    level: str = "info"
    console: bool = True
    log_path: str = "./logs/"
    date_locale: str = DEFAULT_LOCALE

    file_rotation: bool = False
    max_file_size: Optional[Union[str, int]] = "20m"
    max_files: Optional[Union[str, int]] = "14d"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None, **overrides: Any) -> "LoggerConfig":
        """Build a configuration from defaults updated by a (partial) mapping."""
        return cls().merge(data, **overrides)

    def merge(self, changes: Optional[Mapping[str, Any]] = None, **overrides: Any) -> "LoggerConfig":
        """
        Return a copy with the given fields replaced.

        Raises:
            ConfigurationError: On unknown keys or values of the wrong type.
        """
        merged: Dict[str, Any] = {}
        for source in (changes or {}), overrides:
            for key, value in source.items():
                merged[_normalize_key(key)] = value
        if "console" in merged:
            merged["console"] = _as_bool(merged["console"], "console")
        if "file_rotation" in merged:
            merged["file_rotation"] = _as_bool(merged["file_rotation"], "file_rotation")
        return replace(self, **merged)

    @property
    def severity(self) -> Severity:
        return parse_severity(self.level)

    @property
    def max_bytes(self) -> int:
        return parse_size(self.max_file_size)

    @property
    def retention(self) -> Optional[Retention]:
        return parse_retention(self.max_files)

    def validate(self) -> "LoggerConfig":
        """
        Check every field without touching the filesystem.

        Returns:
            LoggerConfig: self, to allow chaining.

        Raises:
            ConfigurationError: On the first invalid field.
        """
        parse_severity(self.level)
        TimestampFormat.for_locale(self.date_locale)
        if not isinstance(self.log_path, (str, os.PathLike)) or not str(self.log_path).strip():
            raise ConfigurationError(f"Invalid log_path {self.log_path!r}")
        if self.file_rotation:
            parse_size(self.max_file_size)
            parse_retention(self.max_files)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ==============================================================================
# PUBLIC PARSERS
# ==============================================================================

def parse_size(value: Optional[Union[str, int]]) -> int:
    """
    Convert "20m" / "512k" / "1g" / plain bytes into a byte count.

    None or 0 means no size limit.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid max_file_size {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ConfigurationError(f"Invalid max_file_size {value!r}")
        return value
    match = _SIZE_RE.match(str(value))
    if not match:
        raise ConfigurationError(f"Invalid max_file_size {value!r}; expected e.g. '20m', '512k' or a byte count")
    return int(match.group(1)) * _SIZE_UNITS[match.group(2).lower()]


def parse_retention(value: Optional[Union[str, int]]) -> Optional[Retention]:
    """
    Convert "14d" (days) or "14" / 14 (file count) into a Retention.

    None means every family member is kept.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid max_files {value!r}")
    match = _RETENTION_RE.match(str(value))
    if not match or int(match.group(1)) < 1:
        raise ConfigurationError(f"Invalid max_files {value!r}; expected e.g. '14d' or a file count")
    return Retention(by_age=bool(match.group(2)), amount=int(match.group(1)))


def load_config(path: str) -> LoggerConfig:
    """
    Load a configuration from a JSON file.

    A missing or corrupted file falls back to the defaults. Values that are
    present but invalid raise ConfigurationError.

    Args:
        path: Path to a JSON object with snake_case or legacy keys.

    Returns:
        LoggerConfig: The validated configuration.
    """
    if not os.path.exists(path):
        logger.debug(f"Logger config not found at {path}. Using defaults.")
        return LoggerConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Logger config at {path} is unreadable ({e}). Using defaults.")
        return LoggerConfig()

    if not isinstance(data, dict):
        logger.warning(f"Logger config at {path} is not a JSON object. Using defaults.")
        return LoggerConfig()

    return LoggerConfig.from_mapping(data).validate()


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

_FIELD_NAMES = {f.name for f in fields(LoggerConfig)}


def _normalize_key(key: str) -> str:
    name = _LEGACY_KEYS.get(key, key)
    if name not in _FIELD_NAMES:
        raise ConfigurationError(f"Unknown configuration field {key!r}")
    return name


def _as_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigurationError(f"Invalid boolean for {field}: {value!r}")
