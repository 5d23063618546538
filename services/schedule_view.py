"""
Read side of the schedule builder: everything the manager's week view needs in
one payload, plus the published-only view employees see.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from models.availability import AvailabilityResponse
from models.employee import Employee, EmployeeRole
from models.shift import ShiftResponse
from models.time_off import TimeOffResponse
from services.aggregator import (
    DayInfo,
    index_availability,
    index_by_employee_and_day,
    scheduling_status,
    week_days,
    weekly_hours,
)
from services.conflicts import Conflict, conflicts_by_employee, find_conflicts
from services.publication import PublicationState, publication_state
from services.shift_store import ShiftStore
from utils.timezone_helpers import ensure_utc, parse_local_date, resolve_range, week_start_of

logger = logging.getLogger(__name__)


class EmployeeSummary(BaseModel):
    id: str
    name: str
    role: EmployeeRole
    hourly_rate: Optional[float] = None
    weekly_hours: float = 0.0
    scheduling_status: str = "under"
    conflict_count: int = 0


class ScheduleData(BaseModel):
    start_date: date
    end_date: date
    employees: List[EmployeeSummary]
    shifts: List[ShiftResponse]
    open_shifts: List[ShiftResponse]
    time_offs: List[TimeOffResponse]
    availability: List[AvailabilityResponse]
    is_published: bool
    publication_state: PublicationState
    weekly_hours: Dict[str, float]
    conflicts: List[Conflict]
    shifts_by_employee_and_day: Dict[str, Dict[int, List[ShiftResponse]]]
    time_offs_by_employee_and_day: Dict[str, Dict[int, List[TimeOffResponse]]]
    availability_by_employee_and_day: Dict[str, Dict[int, List[AvailabilityResponse]]]
    days_of_week: List[DayInfo]


def _summarize(
    employee: Employee, hours: float, conflict_count: int, as_of: date
) -> EmployeeSummary:
    return EmployeeSummary(
        id=employee.id,
        name=employee.name,
        role=employee.role,
        hourly_rate=employee.hourly_rate(as_of),
        weekly_hours=round(hours, 2),
        scheduling_status=scheduling_status(hours),
        conflict_count=conflict_count,
    )


def build_schedule_data(
    store: ShiftStore,
    start_date: Union[str, date],
    end_date: Union[str, date],
    role: Optional[EmployeeRole] = None,
    today: Optional[date] = None,
) -> ScheduleData:
    start_date, end_date = parse_local_date(start_date), parse_local_date(end_date)
    instant_range = resolve_range(start_date, end_date)
    # Day slots are always Monday = 0 .. Sunday = 6, whatever day the range starts on
    week_start = week_start_of(start_date)

    employees =store.load_employees(active_only=True, role=role)
    employees_by_id = {e.id: e for e in employees}

    drafts = store.load_drafts(instant_range)
    published = store.load_published(instant_range)
    all_shifts = sorted(
        [*drafts, *published], key=lambda s: (ensure_utc(s.start_time), s.status.value, s.id)
    )

    # Every status is shown on the grid; only blocking ones produce conflicts
    time_offs = store.load_time_off_overlapping(instant_range, blocking_only=False)
    availability = store.load_availability(employee_ids=list(employees_by_id), effective_by=end_date)

    conflicts = find_conflicts(all_shifts, time_offs, employees_by_id)
    grouped_conflicts = conflicts_by_employee(conflicts)
    hours = weekly_hours(all_shifts)

    shift_views = {(s.status, s.id): ShiftResponse.from_shift(s) for s in all_shifts}
    time_off_views = {t.id: TimeOffResponse.from_notice(t) for t in time_offs}

    shifts_by_day = {
        employee_id: {
            day: [shift_views[(s.status, s.id)] for s in day_shifts]
            for day, day_shifts in days.items()
        }
        for employee_id, days in index_by_employee_and_day(all_shifts, week_start).items()
    }
    blocking = [t for t in time_offs if t.is_blocking]
    time_offs_by_day = {
        employee_id: {day: [time_off_views[t.id] for t in notices] for day, notices in days.items()}
        for employee_id, days in index_by_employee_and_day(blocking, week_start).items()
    }
    availability_by_day = {
        employee_id: {
            day: [AvailabilityResponse.from_row(r) for r in rows] for day, rows in days.items()
        }
        for employee_id, days in index_availability(availability, week_start).items()
    }

    logger.debug(
        f"[SCHEDULE] {start_date}..{end_date}: drafts={len(drafts)} published={len(published)} "
        f"time_offs={len(time_offs)} conflicts={len(conflicts)}"
    )

    return ScheduleData(
        start_date=start_date,
        end_date=end_date,
        employees=[
            _summarize(e, hours.get(e.id, 0.0), len(grouped_conflicts.get(e.id, [])), end_date)
            for e in employees
        ],
        shifts=list(shift_views.values()),
        open_shifts=[shift_views[(s.status, s.id)] for s in all_shifts if s.is_open],
        time_offs=list(time_off_views.values()),
        availability=[AvailabilityResponse.from_row(r) for r in availability],
        is_published=bool(published),
        publication_state=publication_state(drafts, published),
        weekly_hours={employee_id: round(total, 2) for employee_id, total in hours.items()},
        conflicts=conflicts,
        shifts_by_employee_and_day=shifts_by_day,
        time_offs_by_employee_and_day=time_offs_by_day,
        availability_by_employee_and_day=availability_by_day,
        days_of_week=week_days(week_start, today=today),
    )


def published_schedule(
    store: ShiftStore, employee_id: str, start_date: Union[str, date], end_date: Union[str, date]
) -> List[ShiftResponse]:
    """An employee's published shifts in the range. Drafts are never visible here."""
    instant_range = resolve_range(start_date, end_date)
    return [
        ShiftResponse.from_shift(s)
        for s in store.load_published(instant_range, employee_id=employee_id)
    ]
