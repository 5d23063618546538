"""
Shift / time-off conflict detection.

A time-off notice is a whole-day absence marker: it blocks every local civil
day it touches for its employee. A shift conflicts when its local start day is
one of those days. Comparison is by calendar date in the business timezone,
never by instant overlap.
"""

from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from pydantic import BaseModel, field_serializer

from core.exceptions import InvalidShift
from models.employee import Employee
from models.shift import Shift, ShiftStatus
from models.time_off import TimeOffNotice
from utils.datetime_helpers import format_utc_datetime
from utils.timezone_helpers import ensure_utc, local_date_of

DEFAULT_REASON = "No reason provided"
UNKNOWN_EMPLOYEE = "Unknown"


class Conflict(BaseModel):
    shift_id: Optional[int] = None
    shift_status: ShiftStatus
    employee_id: str
    employee_name: str
    shift_date: date
    shift_start: datetime
    shift_end: datetime
    time_off_id: Optional[int] = None
    time_off_reason: str

    @field_serializer("shift_start", "shift_end")
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)


def reason_text(notice: TimeOffNotice) -> str:
    reason = (notice.reason or "").strip()
    return reason or DEFAULT_REASON


def shift_local_date(shift: Shift) -> date:
    if shift.start_time is None:
        raise InvalidShift(f"Shift {shift.id} has no start time")
    return local_date_of(shift.start_time)


def _index_notices(time_offs: Iterable[TimeOffNotice]) -> Dict[Tuple[str, date], TimeOffNotice]:
    """(employee_id, local day) -> first blocking notice covering that day."""
    by_day: Dict[Tuple[str, date], TimeOffNotice] = {}
    for notice in time_offs:
        if not notice.is_blocking:
            continue
        if notice.start_time is None:
            raise InvalidShift(f"Time-off notice {notice.id} has no start time")
        for day in notice.covered_dates():
            by_day.setdefault((notice.employee_id, day), notice)
    return by_day


def find_conflicts(
    shifts: Sequence[Shift],
    time_offs: Iterable[TimeOffNotice],
    employees_by_id: Optional[Mapping[str, Employee]] = None,
) -> List[Conflict]:
    """One Conflict per assigned shift that lands on a blocked day, in input order."""
    employees_by_id = employees_by_id or {}
    blocked = _index_notices(time_offs)
    if not blocked:
        return []

    conflicts: List[Conflict] = []
    for shift in shifts:
        if shift.employee_id is None:
            continue  # Open shifts cannot conflict

        shift_date = shift_local_date(shift)
        notice = blocked.get((shift.employee_id, shift_date))
        if notice is None:
            continue

        employee = employees_by_id.get(shift.employee_id)
        conflicts.append(
            Conflict(
                shift_id=shift.id,
                shift_status=shift.status,
                employee_id=shift.employee_id,
                employee_name=employee.name if employee else UNKNOWN_EMPLOYEE,
                shift_date=shift_date,
                shift_start=ensure_utc(shift.start_time),
                shift_end=ensure_utc(shift.end_time),
                time_off_id=notice.id,
                time_off_reason=reason_text(notice),
            )
        )
    return conflicts


def find_blocking_notice(
    employee_id: Optional[str], start_time: datetime, time_offs: Iterable[TimeOffNotice]
) -> Optional[TimeOffNotice]:
    """The notice that would block assigning employee_id to a shift starting at start_time."""
    if employee_id is None:
        return None
    if start_time is None:
        raise InvalidShift("Shift has no start time")

    shift_date = local_date_of(start_time)
    for notice in time_offs:
        if notice.employee_id == employee_id and notice.is_blocking and notice.covers(shift_date):
            return notice
    return None


def conflicting_shift_ids(conflicts: Iterable[Conflict]) -> Set[int]:
    return {c.shift_id for c in conflicts if c.shift_id is not None}


def conflicts_by_employee(conflicts: Iterable[Conflict]) -> Dict[str, List[Conflict]]:
    grouped: Dict[str, List[Conflict]] = defaultdict(list)
    for conflict in conflicts:
        grouped[conflict.employee_id].append(conflict)
    return dict(grouped)
