import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, TypeVar, Union

from pydantic import BaseModel

from core.config import TARGET_WEEKLY_HOURS, WEEKLY_HOURS_THRESHOLD
from models.availability import Availability
from models.shift import Shift
from models.time_off import TimeOffNotice
from utils.timezone_helpers import ensure_utc, local_date_of

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

Record = TypeVar("Record", bound=Union[Shift, TimeOffNotice])


class DayInfo(BaseModel):
    index: int
    local_date: date
    day_name: str
    day_number: int
    is_today: bool


def week_dates(week_start: date) -> List[date]:
    return [week_start + timedelta(days=i) for i in range(DAYS_IN_WEEK)]


def week_days(week_start: date, today: Optional[date] = None) -> List[DayInfo]:
    today = today or local_date_of_now()
    return [
        DayInfo(
            index=i,
            local_date=day,
            day_name=DAY_NAMES[day.weekday()],
            day_number=day.day,
            is_today=day == today,
        )
        for i, day in enumerate(week_dates(week_start))
    ]


def local_date_of_now() -> date:
    return local_date_of(datetime.now(timezone.utc))


def weekly_hours(shifts: Iterable[Shift]) -> Dict[str, float]:
    """
    Total scheduled hours per employee.

    Drafts and published shifts both count. Open shifts have no employee and
    are skipped. Values are not rounded, so totals over disjoint inputs add up.
    """
    totals: Dict[str, float] = defaultdict(float)
    for shift in shifts:
        if shift.employee_id is None:
            continue
        duration = ensure_utc(shift.end_time) - ensure_utc(shift.start_time)
        totals[shift.employee_id] += duration.total_seconds() / 3600
    return dict(totals)


def _record_days(record: Union[Shift, TimeOffNotice]) -> List[date]:
    if isinstance(record, TimeOffNotice):
        return record.covered_dates()
    return [local_date_of(record.start_time)]


def index_by_employee_and_day(
    records: Iterable[Record], week_start: date
) -> Dict[str, Dict[int, List[Record]]]:
    """
    Bucket shifts (by local start day) or time-off notices (by every local day
    they cover) into day slots 0..6 of the week starting week_start.

    Records without an employee, and days outside the 7-day window, are dropped.
    """
    slots = {day: i for i, day in enumerate(week_dates(week_start))}
    index: Dict[str, Dict[int, List[Record]]] = {}

    for record in records:
        if record.employee_id is None:
            continue
        for day in _record_days(record):
            day_index = slots.get(day)
            if day_index is None:
                continue  # Not in the requested week
            index.setdefault(record.employee_id, {}).setdefault(day_index, []).append(record)
    return index


def index_availability(
    rows: Iterable[Availability], week_start: date
) -> Dict[str, Dict[int, List[Availability]]]:
    """
    Bucket recurring availability into day slots. For each employee and weekday
    only rows from the most recent effective_start_date on or before that day apply.
    """
    dates = week_dates(week_start)
    candidates: Dict[tuple, List[Availability]] = defaultdict(list)
    for row in rows:
        if not 0 <= row.day_of_week < DAYS_IN_WEEK:
            logger.warning(
                f"[SCHEDULE] Skipping availability {row.id} for {row.employee_id}: "
                f"day_of_week {row.day_of_week} is outside 0..6"
            )
            continue
        day = dates[row.day_of_week]
        if row.effective_start_date <= day:
            candidates[(row.employee_id, row.day_of_week)].append(row)

    index: Dict[str, Dict[int, List[Availability]]] = {}
    for (employee_id, day_index), day_rows in candidates.items():
        latest = max(r.effective_start_date for r in day_rows)
        current = sorted(
            (r for r in day_rows if r.effective_start_date == latest), key=lambda r: r.start_time
        )
        index.setdefault(employee_id, {})[day_index] = current
    return index


def scheduling_status(
    total_hours: float,
    target_hours: float = TARGET_WEEKLY_HOURS,
    threshold: float = WEEKLY_HOURS_THRESHOLD,
) -> str:
    if total_hours > target_hours + threshold:
        return "over"
    if total_hours < target_hours - threshold:
        return "under"
    return "normal"
