from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Optional, Union

from pydantic import BaseModel, field_serializer
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Index, SQLModel

from utils.datetime_helpers import format_utc_datetime
from utils.timezone_helpers import ensure_utc, local_date_of


class ShiftStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Columns shared by both shift collections
class ShiftBase(SQLModel):
    # None means an open (unassigned) shift
    employee_id: Optional[str] = Field(default=None)
    start_time: datetime = Field(sa_type=DateTime(timezone=True))
    end_time: datetime = Field(sa_type=DateTime(timezone=True))
    location: str
    role: Optional[str] = Field(default=None)

    @property
    def is_open(self) -> bool:
        return self.employee_id is None

    @property
    def local_date(self) -> date:
        return local_date_of(self.start_time)

    @property
    def duration_hours(self) -> float:
        return (ensure_utc(self.end_time) - ensure_utc(self.start_time)).total_seconds() / 3600


# The manager's working plan. Freely created, edited and deleted.
class DraftShift(ShiftBase, table=True):
    __tablename__ = "draft_shifts"

    __table_args__ = (
        Index("ix_draft_shifts_start_time", "start_time"),
        Index("ix_draft_shifts_employee_id_start_time", "employee_id", "start_time"),
    )

    status: ClassVar[ShiftStatus] = ShiftStatus.DRAFT

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


# What employees see. Rows are only ever appended by publishing (or deleted as
# an explicit override); they are never edited in place.
class PublishedShift(ShiftBase, table=True):
    __tablename__ = "published_shifts"

    __table_args__ = (
        Index("ix_published_shifts_start_time", "start_time"),
        Index("ix_published_shifts_week_start", "week_start"),
        # Backs the publish-time dedup when two publishes race
        UniqueConstraint("employee_id", "start_time", name="uq_published_shifts_employee_start"),
    )

    status: ClassVar[ShiftStatus] = ShiftStatus.PUBLISHED

    id: Optional[int] = Field(default=None, primary_key=True)
    week_start: date
    week_end: date
    published_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))


Shift = Union[DraftShift, PublishedShift]


class ShiftResponse(BaseModel):
    id: int
    status: ShiftStatus
    employee_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: str
    role: Optional[str] = None
    local_date: date
    hours: float
    week_start: Optional[date] = None
    week_end: Optional[date] = None
    published_at: Optional[datetime] = None
    # Set when a draft was forked from a published shift
    forked_from: Optional[int] = None

    @field_serializer("start_time", "end_time", "published_at")
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)

    @classmethod
    def from_shift(cls, shift: Shift, forked_from: Optional[int] = None) -> "ShiftResponse":
        published = isinstance(shift, PublishedShift)
        return cls(
            id=shift.id,
            status=shift.status,
            employee_id=shift.employee_id,
            start_time=ensure_utc(shift.start_time),
            end_time=ensure_utc(shift.end_time),
            location=shift.location,
            role=shift.role,
            local_date=shift.local_date,
            hours=round(shift.duration_hours, 2),
            week_start=shift.week_start if published else None,
            week_end=shift.week_end if published else None,
            published_at=ensure_utc(shift.published_at) if published else None,
            forked_from=forked_from,
        )
