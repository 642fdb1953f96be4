from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Korean weekday names indexed by datetime.weekday() (Monday == 0).
WEEKDAY_NAMES = ("월", "화", "수", "목", "금", "토", "일")


def get_zone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA zone name, falling back to UTC when unknown."""
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def local_now(zone: tzinfo) -> datetime:
    """Current wall-clock time in ``zone`` as a naive datetime."""
    return datetime.now(zone).replace(tzinfo=None)


def to_local(value: datetime, zone: tzinfo) -> datetime:
    """
    Express ``value`` as naive wall-clock time in ``zone``. Naive inputs are taken as
    already local.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(zone).replace(tzinfo=None)


def weekday_name(value: datetime) -> str:
    return WEEKDAY_NAMES[value.weekday()]
