from datetime import date
from typing import Optional


class SchedulingError(Exception):
    """Base class for every error the scheduling core raises on purpose."""


class InvalidDate(SchedulingError):
    pass


class InvalidShift(SchedulingError):
    pass


class ConflictError(SchedulingError):
    """An employee is being assigned on a local day they have time off."""

    def __init__(
        self,
        employee_id: str,
        shift_date: date,
        reason: str,
        employee_name: Optional[str] = None,
    ):
        self.employee_id = employee_id
        self.employee_name = employee_name or employee_id
        self.shift_date = shift_date
        self.reason = reason
        super().__init__(
            f"{self.employee_name} has time off on {shift_date.isoformat()}: {reason}"
        )


class ShiftNotFound(SchedulingError):
    def __init__(self, shift_id: int):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} not found in drafts or published shifts")


class TimeOffNotFound(SchedulingError):
    def __init__(self, time_off_id: int):
        self.time_off_id = time_off_id
        super().__init__(f"Time-off notice {time_off_id} not found")


class InvalidTimeOffTransition(SchedulingError):
    pass


class StoreUnavailable(SchedulingError):
    """Transient infrastructure failure. Callers may retry with backoff."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Storage is temporarily unavailable ({operation})")
