from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from core.deps import get_publication_engine, get_shift_store, to_http_exception
from core.exceptions import SchedulingError
from models.employee import EmployeeRole
from models.shift import ShiftResponse
from services.publication import DeleteResult, PublicationEngine, PublishResult, WeekStatus
from services.schedule_view import ScheduleData, build_schedule_data
from services.shift_store import ShiftStore

router = APIRouter()


# Pydantic models for requests/responses
class CreateShiftRequest(BaseModel):
    # Omit for an open shift
    employee_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    location: str
    role: Optional[str] = None


class UpdateShiftRequest(BaseModel):
    employee_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    role: Optional[str] = None


class PublishRequest(BaseModel):
    # Local civil dates, YYYY-MM-DD
    start_date: str
    end_date: str
    strict_mode: bool = True


class ClearDraftsRequest(BaseModel):
    start_date: str
    end_date: str


class ClearDraftsResponse(BaseModel):
    cleared_count: int


@router.get("/data", response_model=ScheduleData)
async def get_schedule_data(
    start_date: str = Query(..., description="Local start date (YYYY-MM-DD)"),
    end_date: str = Query(..., description="Local end date (YYYY-MM-DD)"),
    role: Optional[EmployeeRole] = Query(None),
    store: ShiftStore = Depends(get_shift_store),
):
    """
    Everything the schedule builder grid needs for a date range: employees,
    draft and published shifts, time off, availability, weekly hours and
    time-off conflicts.
    """
    try:
        return build_schedule_data(store, start_date, end_date, role=role)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post("/shifts", response_model=ShiftResponse)
async def create_shift(
    shift_request: CreateShiftRequest,
    engine: PublicationEngine = Depends(get_publication_engine),
):
    """
    Creates a new draft shift. Naive datetimes are business-local wall times.
    """
    try:
        draft = engine.create_shift(
            start_time=shift_request.start_time,
            end_time=shift_request.end_time,
            location=shift_request.location,
            employee_id=shift_request.employee_id,
            role=shift_request.role,
        )
    except SchedulingError as e:
        raise to_http_exception(e)
    return ShiftResponse.from_shift(draft)


@router.put("/shifts/{shift_id}", response_model=ShiftResponse)
async def update_shift(
    shift_id: int,
    update_request: UpdateShiftRequest,
    engine: PublicationEngine = Depends(get_publication_engine),
):
    """
    Update a draft shift. Editing a published shift forks it into a new draft;
    the response then carries forked_from. A fork with the same employee and
    start as its published shift is skipped on publish.
    """
    try:
        outcome = engine.update_shift(shift_id, update_request.model_dump(exclude_unset=True))
    except SchedulingError as e:
        raise to_http_exception(e)
    return ShiftResponse.from_shift(outcome.shift, forked_from=outcome.forked_from)


@router.post("/shifts/published/{shift_id}/fork", response_model=ShiftResponse)
async def fork_published_shift(
    shift_id: int,
    update_request: Optional[UpdateShiftRequest] = None,
    engine: PublicationEngine = Depends(get_publication_engine),
):
    """
    Copy a published shift into a new draft with optional changes. Keeping the
    employee and start means publishing skips the draft; delete the published
    shift first to replace it.
    """
    changes = update_request.model_dump(exclude_unset=True) if update_request else {}
    try:
        outcome = engine.fork_from_published(shift_id, changes)
    except SchedulingError as e:
        raise to_http_exception(e)
    return ShiftResponse.from_shift(outcome.shift, forked_from=outcome.forked_from)


@router.delete("/shifts/{shift_id}", response_model=DeleteResult)
async def delete_shift(
    shift_id: int,
    engine: PublicationEngine = Depends(get_publication_engine),
):
    """
    Delete a shift. Drafts are checked first, then published shifts.
    """
    try:
        return engine.delete_shift(shift_id)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post("/publish", response_model=PublishResult)
async def publish_schedule(
    publish_request: PublishRequest,
    engine: PublicationEngine = Depends(get_publication_engine),
):
    """
    Publish the draft shifts of a week. In strict mode any time-off conflict
    aborts the publish; otherwise conflicting drafts are held back.
    """
    try:
        return engine.publish(
            publish_request.start_date,
            publish_request.end_date,
            strict_mode=publish_request.strict_mode,
        )
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post("/clear-drafts", response_model=ClearDraftsResponse)
async def clear_drafts(
    clear_request: ClearDraftsRequest,
    engine: PublicationEngine = Depends(get_publication_engine),
):
    try:
        cleared = engine.clear_drafts(clear_request.start_date, clear_request.end_date)
    except SchedulingError as e:
        raise to_http_exception(e)
    return ClearDraftsResponse(cleared_count=cleared)


@router.get("/week-status", response_model=WeekStatus)
async def get_week_status(
    start_date: str = Query(...),
    end_date: str = Query(...),
    engine: PublicationEngine = Depends(get_publication_engine),
):
    try:
        return engine.week_status(start_date, end_date)
    except SchedulingError as e:
        raise to_http_exception(e)
