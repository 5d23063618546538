from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from core.deps import get_time_off_service, to_http_exception
from core.exceptions import SchedulingError
from models.time_off import TimeOffResponse
from services.time_off_service import TimeOffService

router = APIRouter()


class TimeOffRequest(BaseModel):
    employee_id: str
    # Local civil dates, YYYY-MM-DD; the notice covers both days in full
    start_date: str
    end_date: str
    reason: Optional[str] = None


class DenyRequest(BaseModel):
    reason: Optional[str] = None


@router.post("/requests", response_model=TimeOffResponse)
async def request_time_off(
    time_off_request: TimeOffRequest,
    service: TimeOffService = Depends(get_time_off_service),
):
    """
    Submit a time-off request. It starts pending and already blocks scheduling.
    """
    try:
        notice = service.request_time_off(
            employee_id=time_off_request.employee_id,
            start_date=time_off_request.start_date,
            end_date=time_off_request.end_date,
            reason=time_off_request.reason,
        )
    except SchedulingError as e:
        raise to_http_exception(e)
    return TimeOffResponse.from_notice(notice)


@router.post("/{time_off_id}/approve", response_model=TimeOffResponse)
async def approve_time_off(
    time_off_id: int,
    service: TimeOffService = Depends(get_time_off_service),
):
    try:
        return TimeOffResponse.from_notice(service.approve(time_off_id))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post("/{time_off_id}/deny", response_model=TimeOffResponse)
async def deny_time_off(
    time_off_id: int,
    deny_request: Optional[DenyRequest] = None,
    service: TimeOffService = Depends(get_time_off_service),
):
    """
    Deny a pending request. Denied notices stop blocking their days.
    """
    reason = deny_request.reason if deny_request else None
    try:
        return TimeOffResponse.from_notice(service.deny(time_off_id, reason=reason))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get("/range", response_model=List[TimeOffResponse])
async def list_time_off_in_range(
    start_date: str = Query(...),
    end_date: str = Query(...),
    employee_id: Optional[str] = Query(None),
    service: TimeOffService = Depends(get_time_off_service),
):
    try:
        notices = service.list_in_range(start_date, end_date, employee_id=employee_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    return [TimeOffResponse.from_notice(n) for n in notices]


@router.get("/employee/{employee_id}", response_model=List[TimeOffResponse])
async def list_employee_time_off(
    employee_id: str,
    service: TimeOffService = Depends(get_time_off_service),
):
    try:
        notices = service.list_for_employee(employee_id)
    except SchedulingError as e:
        raise to_http_exception(e)
    return [TimeOffResponse.from_notice(n) for n in notices]
