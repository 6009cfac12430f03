"""Wall-clock helpers for business days and hours in the configured local zone."""
import math
from datetime import datetime, timedelta, tzinfo
from typing import Optional

import pytz

from hr_calltracker.core.config import settings

SECONDS_PER_DAY = 24 * 60 * 60


def get_timezone(name: Optional[str] = None) -> tzinfo:
    return pytz.timezone(name or settings.timezone)


def now_local(tz: tzinfo) -> datetime:
    return datetime.now(pytz.UTC).astimezone(tz)


def to_local(instant: datetime, tz: tzinfo) -> datetime:
    """Naive values are taken as local wall-clock time."""
    if instant.tzinfo is None:
        return tz.localize(instant)
    return instant.astimezone(tz)


def _localize(naive: datetime, tz: tzinfo) -> datetime:
    return tz.normalize(tz.localize(naive))


def at_time(instant: datetime, hour: int, tz: tzinfo, minute: int = 0) -> datetime:
    """Same local calendar day, at hour:minute."""
    local = to_local(instant, tz)
    naive = local.replace(tzinfo=None, hour=hour, minute=minute, second=0, microsecond=0)
    return _localize(naive, tz)


def add_days(instant: datetime, days: int, tz: tzinfo) -> datetime:
    """Shift by calendar days keeping the local time-of-day across DST changes."""
    local = to_local(instant, tz)
    return _localize(local.replace(tzinfo=None) + timedelta(days=days), tz)


def same_local_day(a: datetime, b: datetime, tz: tzinfo) -> bool:
    return to_local(a, tz).date() == to_local(b, tz).date()


def is_business_day(instant: datetime, tz: tzinfo) -> bool:
    return to_local(instant, tz).weekday() < 5


def roll_to_business_day(instant: datetime, tz: tzinfo) -> datetime:
    """Move Saturday and Sunday forward to Monday, same time-of-day."""
    while not is_business_day(instant, tz):
        instant = add_days(instant, 1, tz)
    return instant


def in_business_hours(instant: datetime, tz: tzinfo, start_hour: int, end_hour: int) -> bool:
    hour = to_local(instant, tz).hour
    return start_hour <= hour < end_hour


def days_until(target: datetime, now: datetime, tz: tzinfo) -> int:
    """Whole days from now to target, rounded up (negative when target is past)."""
    delta = to_local(target, tz) - to_local(now, tz)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def days_since(past: datetime, now: datetime, tz: tzinfo) -> int:
    """Whole days elapsed from past to now, rounded up."""
    delta = to_local(now, tz) - to_local(past, tz)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
