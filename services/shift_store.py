"""
Typed access to the scheduling tables.

Two independent shift collections (draft_shifts, published_shifts), the
time-off notices, the recurring availability rows and the employee directory.
Reads on the shift and time-off tables are inclusive on start_time and ordered
by start_time ascending. No business rules live here.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from core.exceptions import StoreUnavailable
from models.availability import Availability
from models.employee import Employee, EmployeeRole
from models.shift import DraftShift, PublishedShift
from models.time_off import BLOCKING_STATUSES, TimeOffNotice, TimeOffStatus
from services.employee_directory import EmployeeDirectory
from utils.timezone_helpers import InstantRange, ensure_utc

logger = logging.getLogger(__name__)

ShiftModel = TypeVar("ShiftModel", DraftShift, PublishedShift)


class ShiftStore:
    def __init__(self, session: Session, directory: Optional[EmployeeDirectory] = None):
        self.session = session
        self.directory = directory

    @contextmanager
    def _guard(self, operation: str):
        """Roll back and re-raise store failures as StoreUnavailable."""
        try:
            yield
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"[SHIFT_STORE] {operation}: integrity violation, rolled back: {e.orig}")
            raise StoreUnavailable(operation) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[SHIFT_STORE] {operation} failed: {e}")
            raise StoreUnavailable(operation) from e

    # --- Shifts ---

    def _load_shifts(
        self,
        model: Type[ShiftModel],
        instant_range: InstantRange,
        employee_id: Optional[str] = None,
    ) -> List[ShiftModel]:
        stmt = (
            select(model)
            .where(model.start_time >= instant_range.start)
            .where(model.start_time <= instant_range.end)
        )
        if employee_id is not None:
            stmt = stmt.where(model.employee_id == employee_id)
        stmt = stmt.order_by(model.start_time.asc(), model.id.asc())
        return list(self.session.exec(stmt).all())

    def load_drafts(self, instant_range: InstantRange) -> List[DraftShift]:
        with self._guard("load_drafts"):
            return self._load_shifts(DraftShift, instant_range)

    def load_published(
        self, instant_range: InstantRange, employee_id: Optional[str] = None
    ) -> List[PublishedShift]:
        with self._guard("load_published"):
            return self._load_shifts(PublishedShift, instant_range, employee_id)

    def has_published_in_range(self, instant_range: InstantRange) -> bool:
        with self._guard("has_published_in_range"):
            first = self.session.exec(
                select(PublishedShift.id)
                .where(PublishedShift.start_time >= instant_range.start)
                .where(PublishedShift.start_time <= instant_range.end)
                .limit(1)
            ).first()
        return first is not None

    def get_draft(self, shift_id: int) -> Optional[DraftShift]:
        with self._guard("get_draft"):
            return self.session.get(DraftShift, shift_id)

    def get_published(self, shift_id: int) -> Optional[PublishedShift]:
        with self._guard("get_published"):
            return self.session.get(PublishedShift, shift_id)

    def create_draft(
        self,
        employee_id: Optional[str],
        start_time: datetime,
        end_time: datetime,
        location: str,
        role: Optional[str] = None,
    ) -> DraftShift:
        with self._guard("create_draft"):
            draft = DraftShift(
                employee_id=employee_id,
                start_time=ensure_utc(start_time),
                end_time=ensure_utc(end_time),
                location=location,
                role=role,
            )
            self.session.add(draft)
            self.session.commit()
            self.session.refresh(draft)
            return draft

    def update_draft(self, draft: DraftShift, changes: dict) -> DraftShift:
        with self._guard("update_draft"):
            for key, value in changes.items():
                if key in ("start_time", "end_time") and value is not None:
                    value = ensure_utc(value)
                setattr(draft, key, value)
            draft.updated_at = datetime.now(timezone.utc)
            self.session.add(draft)
            self.session.commit()
            self.session.refresh(draft)
            return draft

    def delete_draft(self, shift_id: int) -> bool:
        with self._guard("delete_draft"):
            draft = self.session.get(DraftShift, shift_id)
            if draft is None:
                return False
            self.session.delete(draft)
            self.session.commit()
            return True

    def delete_published(self, shift_id: int) -> bool:
        with self._guard("delete_published"):
            published = self.session.get(PublishedShift, shift_id)
            if published is None:
                return False
            self.session.delete(published)
            self.session.commit()
            return True

    def delete_drafts_in_range(self, instant_range: InstantRange) -> int:
        with self._guard("delete_drafts_in_range"):
            drafts = self._load_shifts(DraftShift, instant_range)
            for draft in drafts:
                self.session.delete(draft)
            self.session.commit()
            return len(drafts)

    def insert_published(self, rows: Sequence[PublishedShift]) -> List[PublishedShift]:
        """Append rows to the published collection in a single transaction."""
        if not rows:
            return []
        with self._guard("insert_published"):
            self.session.add_all(rows)
            self.session.commit()
            for row in rows:
                self.session.refresh(row)
            return list(rows)

    # --- Time off ---

    def load_time_off(
        self, instant_range: InstantRange, employee_id: Optional[str] = None
    ) -> List[TimeOffNotice]:
        with self._guard("load_time_off"):
            stmt = (
                select(TimeOffNotice)
                .where(TimeOffNotice.start_time >= instant_range.start)
                .where(TimeOffNotice.start_time <= instant_range.end)
            )
            if employee_id is not None:
                stmt = stmt.where(TimeOffNotice.employee_id == employee_id)
            stmt = stmt.order_by(TimeOffNotice.start_time.asc(), TimeOffNotice.id.asc())
            return list(self.session.exec(stmt).all())

    def load_time_off_overlapping(
        self,
        instant_range: InstantRange,
        employee_id: Optional[str] = None,
        blocking_only: bool = True,
    ) -> List[TimeOffNotice]:
        """Notices whose [start, end] span intersects the range."""
        with self._guard("load_time_off_overlapping"):
            stmt = (
                select(TimeOffNotice)
                .where(TimeOffNotice.start_time <= instant_range.end)
                .where(TimeOffNotice.end_time >= instant_range.start)
            )
            if employee_id is not None:
                stmt = stmt.where(TimeOffNotice.employee_id == employee_id)
            if blocking_only:
                stmt = stmt.where(TimeOffNotice.status.in_(BLOCKING_STATUSES))
            stmt = stmt.order_by(TimeOffNotice.start_time.asc(), TimeOffNotice.id.asc())
            return list(self.session.exec(stmt).all())

    def load_time_off_for_employee(self, employee_id: str) -> List[TimeOffNotice]:
        with self._guard("load_time_off_for_employee"):
            stmt = (
                select(TimeOffNotice)
                .where(TimeOffNotice.employee_id == employee_id)
                .order_by(TimeOffNotice.start_time.desc())
            )
            return list(self.session.exec(stmt).all())

    def get_time_off(self, time_off_id: int) -> Optional[TimeOffNotice]:
        with self._guard("get_time_off"):
            return self.session.get(TimeOffNotice, time_off_id)

    def create_time_off(
        self,
        employee_id: str,
        start_time: datetime,
        end_time: datetime,
        reason: Optional[str] = None,
        status: TimeOffStatus = TimeOffStatus.PENDING,
    ) -> TimeOffNotice:
        with self._guard("create_time_off"):
            notice = TimeOffNotice(
                employee_id=employee_id,
                start_time=ensure_utc(start_time),
                end_time=ensure_utc(end_time),
                reason=reason,
                status=status,
            )
            self.session.add(notice)
            self.session.commit()
            self.session.refresh(notice)
            return notice

    def set_time_off_status(
        self, notice: TimeOffNotice, status: TimeOffStatus, reason: Optional[str] = None
    ) -> TimeOffNotice:
        with self._guard("set_time_off_status"):
            notice.status = status
            if reason is not None:
                notice.reason = reason
            self.session.add(notice)
            self.session.commit()
            self.session.refresh(notice)
            return notice

    # --- Read-only inputs ---

    def load_availability(
        self, employee_ids: Optional[Iterable[str]] = None, effective_by: Optional[date] = None
    ) -> List[Availability]:
        with self._guard("load_availability"):
            stmt = select(Availability)
            if employee_ids is not None:
                stmt = stmt.where(Availability.employee_id.in_(list(employee_ids)))
            if effective_by is not None:
                stmt = stmt.where(Availability.effective_start_date <= effective_by)
            stmt = stmt.order_by(Availability.employee_id, Availability.day_of_week, Availability.start_time)
            return list(self.session.exec(stmt).all())

    def load_employees(
        self, active_only: bool = True, role: Optional[EmployeeRole] = None
    ) -> List[Employee]:
        if self.directory is None:
            return []
        return self.directory.list_employees(active_only=active_only, role=role)
