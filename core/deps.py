from typing import Annotated

from fastapi import Depends, HTTPException, status
from sqlmodel import Session

from core.exceptions import (
    ConflictError,
    InvalidDate,
    InvalidShift,
    InvalidTimeOffTransition,
    SchedulingError,
    ShiftNotFound,
    StoreUnavailable,
    TimeOffNotFound,
)
from db.session import get_session
from services.employee_directory import EmployeeDirectory, FirestoreEmployeeDirectory
from services.publication import PublicationEngine
from services.shift_store import ShiftStore
from services.time_off_service import TimeOffService


# Domain error -> HTTP status
STATUS_BY_ERROR = {
    InvalidDate: status.HTTP_400_BAD_REQUEST,
    InvalidShift: 422,  # Unprocessable content
    ConflictError: status.HTTP_409_CONFLICT,
    ShiftNotFound: status.HTTP_404_NOT_FOUND,
    TimeOffNotFound: status.HTTP_404_NOT_FOUND,
    InvalidTimeOffTransition: status.HTTP_409_CONFLICT,
    StoreUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(error: SchedulingError) -> HTTPException:
    """Translate a domain error raised by the services into an HTTPException."""
    status_code = STATUS_BY_ERROR.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(error, ConflictError):
        return HTTPException(
            status_code=status_code,
            detail={
                "message": str(error),
                "employee_id": error.employee_id,
                "employee_name": error.employee_name,
                "date": error.shift_date.isoformat(),
                "reason": error.reason,
            },
        )
    if isinstance(error, StoreUnavailable):
        # Store internals stay in the logs
        return HTTPException(
            status_code=status_code,
            detail="Scheduling data is temporarily unavailable. Please retry.",
        )
    return HTTPException(status_code=status_code, detail=str(error))


def get_employee_directory() -> EmployeeDirectory:
    return FirestoreEmployeeDirectory()


def get_shift_store(
    session: Annotated[Session, Depends(get_session)],
    directory: Annotated[EmployeeDirectory, Depends(get_employee_directory)],
) -> ShiftStore:
    return ShiftStore(session, directory)


def get_publication_engine(
    store: Annotated[ShiftStore, Depends(get_shift_store)],
) -> PublicationEngine:
    return PublicationEngine(store)


def get_time_off_service(
    store: Annotated[ShiftStore, Depends(get_shift_store)],
) -> TimeOffService:
    return TimeOffService(store)
