from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_serializer
from sqlalchemy import DateTime
from sqlmodel import Field, Index, SQLModel

from utils.datetime_helpers import format_utc_datetime
from utils.timezone_helpers import ensure_utc, local_date_of


class TimeOffStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


# Pending requests already block the day; only a denial frees it
BLOCKING_STATUSES = (TimeOffStatus.PENDING, TimeOffStatus.APPROVED)


class TimeOffNotice(SQLModel, table=True):
    __tablename__ = "time_off_notices"

    __table_args__ = (
        Index("ix_time_off_notices_employee_id", "employee_id"),
        Index("ix_time_off_notices_start_time", "start_time"),
        Index("ix_time_off_notices_employee_id_start_time", "employee_id", "start_time"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: str
    start_time: datetime = Field(sa_type=DateTime(timezone=True))
    end_time: datetime = Field(sa_type=DateTime(timezone=True))
    status: TimeOffStatus = Field(default=TimeOffStatus.PENDING)
    reason: Optional[str] = Field(default=None)
    requested_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), sa_type=DateTime(timezone=True)
    )

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES

    def covered_dates(self) -> List[date]:
        """Every local civil day the notice touches, start day through end day."""
        first = local_date_of(self.start_time)
        last = max(first, local_date_of(self.end_time))
        return [date.fromordinal(n) for n in range(first.toordinal(), last.toordinal() + 1)]

    def covers(self, local_day: date) -> bool:
        first = local_date_of(self.start_time)
        return first <= local_day <= max(first, local_date_of(self.end_time))


class TimeOffResponse(BaseModel):
    id: int
    employee_id: str
    start_time: datetime
    end_time: datetime
    status: TimeOffStatus
    reason: Optional[str] = None
    requested_at: datetime
    dates: List[date]

    @field_serializer("start_time", "end_time", "requested_at")
    def serialize_timestamps(self, dt: Optional[datetime]) -> Optional[str]:
        """Ensure timestamps are formatted as UTC with Z suffix"""
        return format_utc_datetime(dt)

    @classmethod
    def from_notice(cls, notice: TimeOffNotice) -> "TimeOffResponse":
        return cls(
            id=notice.id,
            employee_id=notice.employee_id,
            start_time=ensure_utc(notice.start_time),
            end_time=ensure_utc(notice.end_time),
            status=notice.status,
            reason=notice.reason,
            requested_at=ensure_utc(notice.requested_at),
            dates=notice.covered_dates(),
        )
