from datetime import date, time
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


# Recurring weekly availability. Maintained outside this service; read-only here.
class Availability(SQLModel, table=True):
    __tablename__ = "availability"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: str = Field(index=True)
    day_of_week: int = Field(ge=0, le=6)  # 0 = Monday .. 6 = Sunday
    start_time: time
    end_time: time
    effective_start_date: date


class AvailabilityResponse(BaseModel):
    id: int
    employee_id: str
    day_of_week: int
    start_time: time
    end_time: time
    effective_start_date: date

    @classmethod
    def from_row(cls, row: Availability) -> "AvailabilityResponse":
        return cls(**row.model_dump())
