import logging
from datetime import date
from typing import List, Optional, Union

from core.exceptions import InvalidShift, InvalidTimeOffTransition, TimeOffNotFound
from models.time_off import TimeOffNotice, TimeOffStatus
from services.shift_store import ShiftStore
from utils.timezone_helpers import resolve_range

logger = logging.getLogger(__name__)


class TimeOffService:
    """Request / approve / deny workflow for time-off notices."""

    def __init__(self, store: ShiftStore):
        self.store = store

    def request_time_off(
        self,
        employee_id: str,
        start_date: Union[str, date],
        end_date: Union[str, date],
        reason: Optional[str] = None,
    ) -> TimeOffNotice:
        """A pending notice spanning start of start_date to end of end_date, local time."""
        if not employee_id or not employee_id.strip():
            raise InvalidShift("employee_id is required")
        span = resolve_range(start_date, end_date)
        notice = self.store.create_time_off(
            employee_id=employee_id.strip(),
            start_time=span.start,
            end_time=span.end,
            reason=(reason or "").strip() or None,
        )
        logger.info(
            f"[TIME_OFF] {notice.employee_id} requested {start_date}..{end_date} (id={notice.id})"
        )
        return notice

    def _decide(self, time_off_id: int, status: TimeOffStatus, reason: Optional[str]) -> TimeOffNotice:
        notice = self.store.get_time_off(time_off_id)
        if notice is None:
            raise TimeOffNotFound(time_off_id)
        if notice.status != TimeOffStatus.PENDING:
            raise InvalidTimeOffTransition(
                f"Time-off notice {time_off_id} is already {notice.status.value}"
            )
        notice = self.store.set_time_off_status(notice, status, reason=reason)
        logger.info(f"[TIME_OFF] Notice {time_off_id} for {notice.employee_id} {status.value}")
        return notice

    def approve(self, time_off_id: int) -> TimeOffNotice:
        return self._decide(time_off_id, TimeOffStatus.APPROVED, None)

    def deny(self, time_off_id: int, reason: Optional[str] = None) -> TimeOffNotice:
        return self._decide(time_off_id, TimeOffStatus.DENIED, reason)

    def list_in_range(
        self,
        start_date: Union[str, date],
        end_date: Union[str, date],
        employee_id: Optional[str] = None,
    ) -> List[TimeOffNotice]:
        """Every notice, whatever its status, touching the local date range."""
        return self.store.load_time_off_overlapping(
            resolve_range(start_date, end_date), employee_id=employee_id, blocking_only=False
        )

    def list_for_employee(self, employee_id: str) -> List[TimeOffNotice]:
        return self.store.load_time_off_for_employee(employee_id)
