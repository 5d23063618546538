from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.deps import get_shift_store, to_http_exception
from core.exceptions import SchedulingError
from models.shift import ShiftResponse
from services.schedule_view import published_schedule
from services.shift_store import ShiftStore
from utils.timezone_helpers import get_week_range

router = APIRouter()


@router.get("/employee/{employee_id}", response_model=List[ShiftResponse])
async def get_employee_schedule(
    employee_id: str,
    start_date: Optional[str] = Query(None, description="Local start date, defaults to this Monday"),
    end_date: Optional[str] = Query(None, description="Local end date, defaults to this Sunday"),
    store: ShiftStore = Depends(get_shift_store),
):
    """
    Published shifts for one employee. Drafts are never returned here.
    """
    if start_date is None or end_date is None:
        monday, sunday, _ = get_week_range(datetime.now(timezone.utc))
        start_date = start_date or monday.isoformat()
        end_date = end_date or sunday.isoformat()

    try:
        return published_schedule(store, employee_id, start_date, end_date)
    except SchedulingError as e:
        raise to_http_exception(e)
