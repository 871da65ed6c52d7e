"""
Date/time helpers shared by the scheduling engine.

Canonical representations:
  - slot and appointment instants are naive UTC datetimes
  - schedule rules are local `time` values in the clinic timezone

A rule time is turned into an instant by composing it with a calendar date in
the clinic timezone and converting to UTC (compose_utc).
"""

from __future__ import annotations

import calendar
import enum
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Tuple
from zoneinfo import ZoneInfo

from hms_scheduling.core.config import settings


class Weekday(enum.IntEnum):
    """Same numbering as date.weekday()."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


WEEKDAY_NUMBERING = "0=Monday ... 6=Sunday, as Python date.weekday(); JavaScript getDay() numbers Sunday as 0"


def get_clinic_timezone(name: str | None = None) -> ZoneInfo:
    return ZoneInfo(name or settings.clinic_timezone)


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """Half-open interval overlap; touching intervals do not overlap."""
    return a_start < b_end and b_start < a_end


def daterange(start: date, end: date) -> Iterator[date]:
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def to_utc_naive(dt: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC already."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def compose_utc(d: date, t: time, tz: ZoneInfo) -> datetime:
    local = datetime.combine(d, t).replace(tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    return instant.replace(tzinfo=timezone.utc).astimezone(tz)


def local_day_bounds(d: date, tz: ZoneInfo) -> Tuple[datetime, datetime]:
    """UTC instants [start, end) covering the local calendar day d."""
    return compose_utc(d, time.min, tz), compose_utc(d + timedelta(days=1), time.min, tz)


def local_dates_touched(start: datetime, end: datetime, tz: ZoneInfo) -> Tuple[date, date]:
    """First and last local calendar dates touched by the half-open interval [start, end)."""
    first = to_local(start, tz).date()
    last = to_local(end - timedelta(microseconds=1), tz).date()
    return first, max(first, last)


def local_today(tz: ZoneInfo) -> date:
    return datetime.now(tz).date()


def utc_now() -> datetime:
    """Current instant as a naive UTC datetime, matching stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
