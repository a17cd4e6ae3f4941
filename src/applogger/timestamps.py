from __future__ import annotations

"""
Locale-Aware Timestamp Formatting.

Renders a fixed-field timestamp (2-digit day and month, 4-digit year,
24-hour HH:MM:SS) whose date field order and separators follow the short
date convention of a CLDR locale, e.g. "26.05.2025, 23:59:59" for de-DE and
"05/26/2025, 23:59:59" for en-US.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional

from babel import Locale, UnknownLocaleError

from applogger.errors import ConfigurationError

DEFAULT_LOCALE: str = "de-DE"

# CLDR pattern tokens: quoted literal, run of one field letter, plain literal
_PATTERN_TOKEN = re.compile(r"'(?:[^']|'')*'|([A-Za-z])\1*|[^A-Za-z']+")

_FIELD_CODES = {
    "d": "{day:02d}",
    "M": "{month:02d}",
    "L": "{month:02d}",
    "y": "{year:04d}",
    "Y": "{year:04d}",
    "u": "{year:04d}",
}


@dataclass(frozen=True)
class TimestampFormat:
    """
    Compiled timestamp layout for one locale.

    Attributes:
        locale: The identifier the layout was resolved from.
        date_template: str.format template over day/month/year.
    """
    locale: str
    date_template: str

    @classmethod
    def for_locale(cls, identifier: str) -> "TimestampFormat":
        """
        Resolve the layout of a BCP 47 / POSIX style locale identifier.

        Raises:
            ConfigurationError: If the identifier is malformed or unknown.
        """
        # checked before the cache lookup, which needs a hashable key
        if not isinstance(identifier, str):
            raise ConfigurationError(f"Invalid date locale {identifier!r}")
        return _compile(identifier)

    def format_date(self, moment: datetime) -> str:
        return self.date_template.format(day=moment.day, month=moment.month, year=moment.year)

    def format(self, moment: Optional[datetime] = None) -> str:
        """Render `moment` (default: now, local time) as a full timestamp."""
        if moment is None:
            moment = datetime.now()
        return f"{self.format_date(moment)}, {moment:%H:%M:%S}"


def format_timestamp(locale: str = DEFAULT_LOCALE, moment: Optional[datetime] = None) -> str:
    return TimestampFormat.for_locale(locale).format(moment)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

@lru_cache(maxsize=32)
def _compile(identifier: str) -> TimestampFormat:
    if not identifier.strip():
        raise ConfigurationError(f"Invalid date locale {identifier!r}")

    sep = "-" if "-" in identifier else "_"
    try:
        cldr_locale = Locale.parse(identifier.strip(), sep=sep)
    except (UnknownLocaleError, ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid date locale {identifier!r}: {e}") from e

    pattern = cldr_locale.date_formats["short"].pattern
    return TimestampFormat(locale=identifier, date_template=_template_from_pattern(pattern, identifier))


def _template_from_pattern(pattern: str, identifier: str) -> str:
    """Translate a CLDR short date pattern into a zero-padded format template."""
    parts = []
    seen = set()
    for match in _PATTERN_TOKEN.finditer(pattern):
        token = match.group(0)
        letter = match.group(1)
        if letter is None:
            if token.startswith("'"):
                token = token[1:-1].replace("''", "'")
            parts.append(token.replace("{", "{{").replace("}", "}}"))
        elif letter in _FIELD_CODES:
            code = _FIELD_CODES[letter]
            if code not in seen:
                seen.add(code)
                parts.append(code)
        # era and other non-numeric fields are not part of the layout

    if len(seen) != 3:
        raise ConfigurationError(
            f"Locale {identifier!r} has no numeric day/month/year short date pattern ({pattern!r})"
        )
    return "".join(parts).strip()
