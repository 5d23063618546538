"""
Publication engine: moves a week's draft plan into the published record.

Publishing copies drafts into published_shifts; drafts are never removed by
it. Because drafts outlive publication, a week can be re-published any number
of times, so every publish dedups the drafts against what is already
published, keyed by (employee_id, start_time).
"""

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from core.exceptions import ConflictError, InvalidShift, ShiftNotFound
from models.employee import Employee
from models.shift import DraftShift, PublishedShift, Shift
from services.conflicts import (
    Conflict,
    conflicting_shift_ids,
    find_blocking_notice,
    find_conflicts,
    reason_text,
)
from services.shift_store import ShiftStore
from utils.timezone_helpers import (
    InstantRange,
    ensure_utc,
    local_date_of,
    local_end_of_day,
    local_start_of_day,
    parse_local_date,
    resolve_range,
    to_utc,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("employee_id", "start_time", "end_time", "location", "role")


class PublicationState(str, Enum):
    UNPUBLISHED = "unpublished"
    PARTIALLY_PUBLISHED = "partially_published"
    PUBLISHED = "published"


class PublishResult(BaseModel):
    success: bool
    message: str
    published_count: int = 0
    skipped_count: int = 0
    conflicts: List[Conflict] = []


class WeekStatus(BaseModel):
    week_start: date
    week_end: date
    total_shifts: int
    draft_shifts: int
    published_shifts: int
    conflicts: int
    can_publish: bool
    is_published: bool
    state: PublicationState


class DeleteResult(BaseModel):
    shift_id: int
    deleted_from: str
    message: str


class UpdateOutcome(NamedTuple):
    shift: DraftShift
    # Id of the published shift the draft was forked from, if any
    forked_from: Optional[int] = None


def dedup_key(shift: Shift) -> Tuple:
    """
    Identity of a logical assignment across the two collections.

    Assigned shifts are keyed by (employee_id, start). Open shifts have no
    employee to tell them apart, so end and location join the key.
    """
    start = ensure_utc(shift.start_time)
    if shift.employee_id is None:
        return (None, start, ensure_utc(shift.end_time), shift.location)
    return (shift.employee_id, start)


def publication_state(drafts: Sequence[DraftShift], published: Sequence[PublishedShift]) -> PublicationState:
    if not published:
        return PublicationState.UNPUBLISHED
    published_keys = {dedup_key(p) for p in published}
    if all(dedup_key(d) in published_keys for d in drafts):
        return PublicationState.PUBLISHED
    return PublicationState.PARTIALLY_PUBLISHED


def validate_shift_fields(
    start_time: Optional[datetime], end_time: Optional[datetime], location: Optional[str]
) -> None:
    if start_time is None or end_time is None:
        raise InvalidShift("start_time and end_time are required")
    if not location or not str(location).strip():
        raise InvalidShift("location is required")
    if ensure_utc(start_time) >= ensure_utc(end_time):
        raise InvalidShift("Shift must end after it starts")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PublicationEngine:
    def __init__(self, store: ShiftStore, clock: Callable[[], datetime] = _utc_now):
        self.store = store
        self.clock = clock

    def _employees_by_id(self) -> Dict[str, Employee]:
        return {e.id: e for e in self.store.load_employees(active_only=False)}

    def _detect(self, shifts: Sequence[Shift], instant_range: InstantRange) -> List[Conflict]:
        time_offs = self.store.load_time_off_overlapping(instant_range)
        if not time_offs:
            return []
        return find_conflicts(shifts, time_offs, self._employees_by_id())

    # --- Publishing ---

    def publish(
        self, week_start: Union[str, date], week_end: Union[str, date], strict_mode: bool = True
    ) -> PublishResult:
        start_date, end_date = parse_local_date(week_start), parse_local_date(week_end)
        instant_range = resolve_range(start_date, end_date)

        drafts = self.store.load_drafts(instant_range)
        if not drafts:
            logger.info(f"[PUBLISH] {start_date}..{end_date}: no draft shifts to publish")
            return PublishResult(success=True, message="No draft shifts to publish")

        conflicts = self._detect(drafts, instant_range)
        if strict_mode and conflicts:
            logger.info(
                f"[PUBLISH] {start_date}..{end_date}: blocked by {len(conflicts)} time-off conflict(s)"
            )
            return PublishResult(
                success=False,
                message=f"Cannot publish: {len(conflicts)} shift(s) conflict with time-off",
                conflicts=conflicts,
            )

        held_back = conflicting_shift_ids(conflicts)
        seen = {dedup_key(p) for p in self.store.load_published(instant_range)}
        published_at = self.clock()

        new_rows: List[PublishedShift] = []
        skipped = 0
        for draft in drafts:
            if draft.id in held_back:
                continue
            key = dedup_key(draft)
            if key in seen:
                skipped += 1
                continue
            seen.add(key)
            new_rows.append(
                PublishedShift(
                    employee_id=draft.employee_id,
                    start_time=ensure_utc(draft.start_time),
                    end_time=ensure_utc(draft.end_time),
                    location=draft.location,
                    role=draft.role,
                    week_start=start_date,
                    week_end=end_date,
                    published_at=published_at,
                )
            )

        self.store.insert_published(new_rows)
        logger.info(
            f"[PUBLISH] {start_date}..{end_date}: published={len(new_rows)} skipped={skipped} "
            f"held_back={len(held_back)} strict={strict_mode}"
        )

        message = f"Published {len(new_rows)} shift(s)"
        if skipped:
            message += f", {skipped} already published"
        if conflicts:
            message += f", {len(conflicts)} held back by time-off conflicts"
        return PublishResult(
            success=True,
            message=message,
            published_count=len(new_rows),
            skipped_count=skipped,
            conflicts=conflicts,
        )

    def clear_drafts(self, week_start: Union[str, date], week_end: Union[str, date]) -> int:
        instant_range = resolve_range(week_start, week_end)
        cleared = self.store.delete_drafts_in_range(instant_range)
        logger.info(f"[PUBLISH] Cleared {cleared} draft shift(s) for {week_start}..{week_end}")
        return cleared

    def week_status(self, week_start: Union[str, date], week_end: Union[str, date]) -> WeekStatus:
        start_date, end_date = parse_local_date(week_start), parse_local_date(week_end)
        instant_range = resolve_range(start_date, end_date)

        drafts = self.store.load_drafts(instant_range)
        published = self.store.load_published(instant_range)
        draft_conflicts = self._detect(drafts, instant_range) if drafts else []

        return WeekStatus(
            week_start=start_date,
            week_end=end_date,
            total_shifts=len(drafts) + len(published),
            draft_shifts=len(drafts),
            published_shifts=len(published),
            conflicts=len(draft_conflicts),
            can_publish=bool(drafts) and not draft_conflicts,
            is_published=bool(published),
            state=publication_state(drafts, published),
        )

    # --- Draft editing ---

    def _ensure_available(self, employee_id: Optional[str], start_time: datetime) -> None:
        """Raise ConflictError if employee_id has time off on the shift's local day."""
        if employee_id is None:
            return
        shift_date = local_date_of(start_time)
        day_range = InstantRange(local_start_of_day(shift_date), local_end_of_day(shift_date))
        notices = self.store.load_time_off_overlapping(day_range, employee_id=employee_id)
        notice = find_blocking_notice(employee_id, start_time, notices)
        if notice is None:
            return

        employee = self._employees_by_id().get(employee_id)
        logger.info(f"[SCHEDULE] Rejected assignment of {employee_id} on {shift_date}: time off")
        raise ConflictError(
            employee_id=employee_id,
            shift_date=shift_date,
            reason=reason_text(notice),
            employee_name=employee.name if employee else None,
        )

    def create_shift(
        self,
        start_time: datetime,
        end_time: datetime,
        location: str,
        employee_id: Optional[str] = None,
        role: Optional[str] = None,
    ) -> DraftShift:
        start_time = to_utc(start_time) if start_time is not None else None
        end_time = to_utc(end_time) if end_time is not None else None
        validate_shift_fields(start_time, end_time, location)
        self._ensure_available(employee_id, start_time)
        return self.store.create_draft(
            employee_id=employee_id,
            start_time=start_time,
            end_time=end_time,
            location=location.strip(),
            role=role,
        )

    @staticmethod
    def _normalize_changes(changes: dict) -> dict:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise InvalidShift(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        normalized = dict(changes)
        for key in ("start_time", "end_time"):
            if normalized.get(key) is not None:
                normalized[key] = to_utc(normalized[key])
        cleared = [k for k in ("start_time", "end_time", "location") if k in normalized and normalized[k] is None]
        if cleared:
            raise InvalidShift(f"{', '.join(cleared)} cannot be cleared")
        return normalized

    def update_shift(self, shift_id: int, changes: dict) -> UpdateOutcome:
        """
        Edit a draft. An id that only exists in the published collection is
        forked into a new draft instead; published rows are never edited.
        """
        draft = self.store.get_draft(shift_id)
        if draft is None:
            if self.store.get_published(shift_id) is not None:
                return self.fork_from_published(shift_id, changes)
            raise ShiftNotFound(shift_id)

        changes = self._normalize_changes(changes)
        merged = {field: getattr(draft, field) for field in EDITABLE_FIELDS}
        merged.update(changes)
        validate_shift_fields(merged["start_time"], merged["end_time"], merged["location"])

        if "employee_id" in changes or "start_time" in changes:
            self._ensure_available(merged["employee_id"], merged["start_time"])

        return UpdateOutcome(self.store.update_draft(draft, changes))

    def fork_from_published(self, published_id: int, changes: Optional[dict] = None) -> UpdateOutcome:
        """
        New draft seeded from a published shift plus changes; the published row is untouched.

        A fork that keeps the employee and start shares the published row's
        dedup key, so publishing skips it and the published row stays as it
        was. To replace the published shift, delete it before publishing.
        """
        published = self.store.get_published(published_id)
        if published is None:
            raise ShiftNotFound(published_id)

        changes = self._normalize_changes(changes or {})
        merged = {field: getattr(published, field) for field in EDITABLE_FIELDS}
        merged.update(changes)
        merged["start_time"] = ensure_utc(merged["start_time"])
        merged["end_time"] = ensure_utc(merged["end_time"])
        validate_shift_fields(merged["start_time"], merged["end_time"], merged["location"])
        self._ensure_available(merged["employee_id"], merged["start_time"])

        draft = self.store.create_draft(**merged)
        logger.info(f"[SCHEDULE] Forked published shift {published_id} into draft {draft.id}")
        if dedup_key(draft) == dedup_key(published):
            logger.warning(
                f"[SCHEDULE] Draft {draft.id} keeps the employee and start of published shift "
                f"{published_id}; publishing will skip it"
            )
        return UpdateOutcome(draft, forked_from=published_id)

    def delete_shift(self, shift_id: int) -> DeleteResult:
        # Most deletions target in-progress drafts
        if self.store.delete_draft(shift_id):
            return DeleteResult(
                shift_id=shift_id,
                deleted_from="draft_shifts",
                message="Draft shift deleted successfully",
            )
        if self.store.delete_published(shift_id):
            logger.info(f"[SCHEDULE] Published shift {shift_id} deleted by override")
            return DeleteResult(
                shift_id=shift_id,
                deleted_from="published_shifts",
                message="Published shift deleted successfully",
            )
        raise ShiftNotFound(shift_id)
