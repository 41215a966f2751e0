"""Helpers for producing timestamps in the configured timezone."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..logging_config import logger

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DAY_FORMAT = "%Y%m%d"


def resolve_timezone(name: str = "") -> Optional[tzinfo]:
    """Resolve *name* to a tzinfo; an empty name means local time (``None``)."""

    candidate = (name or "").strip()
    if not candidate:
        return None
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown timezone; using local time", extra={"timezone": candidate})
    return None


def now_in_timezone(name: str = "") -> datetime:
    """Return the current time in timezone *name*, or local time when empty."""

    tz = resolve_timezone(name)
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


__all__ = [
    "DAY_FORMAT",
    "TIMESTAMP_FORMAT",
    "format_timestamp",
    "now_in_timezone",
    "resolve_timezone",
]
