from __future__ import annotations

"""
Route and Filename Derivation.

A route is the logical logger name plus its creation date, e.g.
"sensor-20250526". It is computed once per logger. Non-rotating loggers
write to "<route>.log"; rotating loggers write a family of files carrying a
single rotation date instead, "<name>-<YYYY-MM-DD>.log", with size overflow
segments "<name>-<YYYY-MM-DD>.<n>.log".
"""

import os
import re
from datetime import date, datetime
from typing import Optional, Tuple

LOG_SUFFIX: str = ".log"
ROUTE_DATE_FORMAT: str = "%Y%m%d"
ROTATION_DATE_FORMAT: str = "%Y-%m-%d"


def derive_route(name: str, now: Optional[datetime] = None) -> str:
    """
    Build the route for a logical name.

    The date stem is always year-month-day without separators, regardless
    of the locale used for display, and ignores the time of day. The
    configured date locale therefore takes no part in the route.
    """
    if now is None:
        now = datetime.now()
    return f"{name}-{now:{ROUTE_DATE_FORMAT}}"


def single_file_path(log_path: str, route: str) -> str:
    return os.path.join(log_path, f"{route}{LOG_SUFFIX}")


def rotating_file_path(log_path: str, name: str, day: date, index: int = 0) -> str:
    """Path of one member of a rotating family; index 0 has no segment number."""
    stem = f"{name}-{day:{ROTATION_DATE_FORMAT}}"
    if index:
        stem = f"{stem}.{index}"
    return os.path.join(log_path, f"{stem}{LOG_SUFFIX}")


def rotation_family_pattern(name: str) -> re.Pattern[str]:
    """Regex matching the basenames of a rotating family; groups are (date, index)."""
    return re.compile(
        rf"^{re.escape(name)}-(\d{{4}}-\d{{2}}-\d{{2}})(?:\.(\d+))?{re.escape(LOG_SUFFIX)}$"
    )


def parse_family_member(pattern: re.Pattern[str], basename: str) -> Optional[Tuple[date, int]]:
    match = pattern.match(basename)
    if not match:
        return None
    try:
        day = datetime.strptime(match.group(1), ROTATION_DATE_FORMAT).date()
    except ValueError:
        return None
    return day, int(match.group(2) or 0)
