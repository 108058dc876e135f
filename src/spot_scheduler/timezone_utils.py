"""Reference timezone and local day-boundary helpers."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

# Day boundaries and day/night grid rates are always evaluated here.
REFERENCE_TIMEZONE_NAME = "Europe/Tallinn"
REFERENCE_TIMEZONE: tzinfo = ZoneInfo(REFERENCE_TIMEZONE_NAME)

_LAST_SECOND = time(23, 59, 59)


def local_midnight(day: date, tz: tzinfo = REFERENCE_TIMEZONE) -> datetime:
    """Return the aware instant at which ``day`` starts in ``tz``."""
    return datetime.combine(day, time.min, tzinfo=tz)


def day_bounds(day_start: datetime) -> tuple[datetime, datetime]:
    """Return ``(start, end)`` for the local calendar day beginning at ``day_start``.

    The end is the last whole second of the same calendar day, so a day
    with a DST transition is still covered exactly.
    """
    end = datetime.combine(day_start.date(), _LAST_SECOND, tzinfo=day_start.tzinfo)
    return day_start, end


def next_day(day_start: datetime) -> datetime:
    """Advance by one calendar day, keeping local midnight across DST changes."""
    return local_midnight(day_start.date() + timedelta(days=1), day_start.tzinfo)


def first_day(now: datetime, start_today: bool, tz: tzinfo = REFERENCE_TIMEZONE) -> datetime:
    """Pick the first scheduled day: today's midnight or the next one."""
    today = now.astimezone(tz).date()
    if start_today:
        return local_midnight(today, tz)
    return local_midnight(today + timedelta(days=1), tz)
