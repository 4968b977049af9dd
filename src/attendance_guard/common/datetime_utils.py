from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_ORG_TIMEZONE


def org_timezone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or DEFAULT_ORG_TIMEZONE)


def now_local(tz: tzinfo) -> datetime:
    """Current time in the organization timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(tz)


def to_org_local(value: datetime, tz: tzinfo) -> datetime:
    """Normalize a timestamp to the organization timezone.

    Aware values are converted. Naive values are taken to already be
    org-local wall time; the client's own timezone is never consulted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def at(work_date: date, clock: time, tz: tzinfo) -> datetime:
    """Combine a work date and a wall-clock time in ``tz``."""
    return datetime.combine(work_date, clock).replace(tzinfo=tz)


def whole_minutes(delta: timedelta) -> int:
    """Floor a duration to whole minutes, never below zero."""
    return max(0, int(delta.total_seconds() // 60))
