"""
Timezone utilities for turning business-local calendar dates into absolute
UTC instants and back.

Requests carry civil dates ("2025-11-05") that only make sense in the business
timezone (America/New_York by default). Everything stored is UTC. The helpers
here are the only place that conversion happens.
"""

from datetime import date, datetime
from datetime import time as datetime_time
from datetime import timedelta, timezone
from typing import NamedTuple, Optional, Tuple, Union
from zoneinfo import ZoneInfo

from core.config import BUSINESS_TIMEZONE
from core.exceptions import InvalidDate

# Local end of day, millisecond precision
END_OF_DAY = datetime_time(23, 59, 59, 999000)


class InstantRange(NamedTuple):
    """Closed UTC range [start, end]."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        instant = ensure_utc(instant)
        return self.start <= instant <= self.end


def business_zone(tz: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz or BUSINESS_TIMEZONE)


def civil_date(year: int, month: int, day: int) -> date:
    """Build a date, raising InvalidDate for out-of-range components."""
    try:
        return date(int(year), int(month), int(day))
    except (TypeError, ValueError) as e:
        raise InvalidDate(f"Invalid date {year}-{month}-{day}: {e}") from e


def parse_local_date(value: Union[str, date]) -> date:
    """
    Parse a YYYY-MM-DD civil date.

    Args:
        value: date string or date object (datetimes are rejected, a civil date
            has no time component)

    Returns:
        date: the parsed date
    """
    if isinstance(value, datetime):
        raise InvalidDate(f"Expected a calendar date, got a timestamp: {value.isoformat()}")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) != 10:
        raise InvalidDate(f"Invalid date {value!r}, expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidDate(f"Invalid date {value!r}, expected YYYY-MM-DD") from e


def _in_zone(local_dt: datetime, tz: Optional[str]) -> datetime:
    # fold=0 picks the first occurrence of an ambiguous wall time
    return local_dt.replace(tzinfo=business_zone(tz), fold=0)


def is_daylight_saving(local_dt: datetime, tz: Optional[str] = None) -> bool:
    """
    Whether daylight saving time is in effect at a local wall time.

    This is the single DST decision point. Day boundaries check it at their own
    wall time: local midnight for the start of a day, 23:59:59.999 for the end.
    On transition days the two checks disagree, which is what makes the
    spring-forward day 23 hours long and the fall-back day 25 hours long.
    """
    return bool(_in_zone(local_dt, tz).dst())


def utc_offset_hours(local_dt: datetime, tz: Optional[str] = None) -> float:
    """
    Hours the business zone is behind UTC at a local wall time.

    For America/New_York this is 5 (EST) or 4 (EDT).
    """
    zone_dt = _in_zone(local_dt, tz)
    dst = zone_dt.dst() or timedelta(0)
    standard_hours = -(zone_dt.utcoffset() - dst).total_seconds() / 3600
    if is_daylight_saving(local_dt, tz):
        return standard_hours - dst.total_seconds() / 3600
    return standard_hours


def local_to_utc(local_dt: datetime, tz: Optional[str] = None) -> datetime:
    """Convert a naive business-local wall time to an aware UTC datetime."""
    naive = local_dt.replace(tzinfo=None)
    # timedelta arithmetic carries across day, month and year boundaries
    shifted = naive + timedelta(hours=utc_offset_hours(naive, tz))
    return shifted.replace(tzinfo=timezone.utc)


def local_start_of_day(date_or_dt, tz: Optional[str] = None) -> datetime:
    """
    Get the start of day (00:00:00) in the business timezone.

    Args:
        date_or_dt: date or datetime object
        tz: optional IANA timezone override

    Returns:
        datetime: Start of day in UTC
    """
    local_date = date_or_dt.date() if isinstance(date_or_dt, datetime) else date_or_dt
    return local_to_utc(datetime.combine(local_date, datetime_time.min), tz)


def local_end_of_day(date_or_dt, tz: Optional[str] = None) -> datetime:
    """
    Get the end of day (23:59:59.999) in the business timezone.

    Args:
        date_or_dt: date or datetime object
        tz: optional IANA timezone override

    Returns:
        datetime: End of day in UTC
    """
    local_date = date_or_dt.date() if isinstance(date_or_dt, datetime) else date_or_dt
    return local_to_utc(datetime.combine(local_date, END_OF_DAY), tz)


def resolve_day_bounds(year: int, month: int, day: int, tz: Optional[str] = None) -> InstantRange:
    """UTC instants of local midnight and local 23:59:59.999 for a civil date."""
    local_date = civil_date(year, month, day)
    return InstantRange(local_start_of_day(local_date, tz), local_end_of_day(local_date, tz))


def resolve_range(
    start: Union[str, date], end: Union[str, date], tz: Optional[str] = None
) -> InstantRange:
    """UTC range from the start of one civil date to the end of another."""
    start_date = parse_local_date(start)
    end_date = parse_local_date(end)
    if end_date < start_date:
        raise InvalidDate(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        )
    return InstantRange(local_start_of_day(start_date, tz), local_end_of_day(end_date, tz))


def ensure_utc(dt: datetime) -> datetime:
    """Tag naive datetimes read back from the store as UTC; convert aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_utc(dt: datetime, tz: Optional[str] = None) -> datetime:
    """Normalize request datetimes: naive values are business-local wall times."""
    if dt.tzinfo is None:
        return local_to_utc(dt, tz)
    return dt.astimezone(timezone.utc)


def from_utc_to_local(utc_dt: datetime, tz: Optional[str] = None) -> datetime:
    """Convert a UTC datetime to the business timezone."""
    return ensure_utc(utc_dt).astimezone(business_zone(tz))


def local_date_of(instant: datetime, tz: Optional[str] = None) -> date:
    """The civil day an instant falls on in the business timezone."""
    return from_utc_to_local(instant, tz).date()


def week_start_of(local_date: date) -> date:
    """Monday of the week containing local_date (weekday() is 0 for Monday)."""
    return local_date - timedelta(days=local_date.weekday())


def get_week_range(utc_ref: datetime, tz: Optional[str] = None) -> Tuple[date, date, InstantRange]:
    """
    Get the week (Monday to Sunday) containing a reference instant.

    Returns:
        Tuple of Monday, Sunday and the UTC range covering both days.
    """
    monday = week_start_of(local_date_of(utc_ref, tz))
    sunday = monday + timedelta(days=6)
    return monday, sunday, resolve_range(monday, sunday, tz)
