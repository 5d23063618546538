from datetime import date, datetime, timezone

import pytest

from core.exceptions import InvalidDate, InvalidShift, InvalidTimeOffTransition, TimeOffNotFound
from models.time_off import TimeOffStatus


def test_request_spans_whole_local_days(time_off_service):
    notice = time_off_service.request_time_off("E1", "2025-03-08", "2025-03-09", reason="  ")

    assert notice.status == TimeOffStatus.PENDING
    assert notice.reason is None
    assert notice.start_time.replace(tzinfo=timezone.utc) == datetime(2025, 3, 8, 5, tzinfo=timezone.utc)
    # The spring-forward day ends on daylight time
    assert notice.end_time.replace(tzinfo=timezone.utc) == datetime(
        2025, 3, 10, 3, 59, 59, 999000, tzinfo=timezone.utc
    )
    assert notice.covered_dates() == [date(2025, 3, 8), date(2025, 3, 9)]


def test_request_validation(time_off_service):
    with pytest.raises(InvalidDate):
        time_off_service.request_time_off("E1", "2025-03-09", "2025-03-08")
    with pytest.raises(InvalidDate):
        time_off_service.request_time_off("E1", "March 8", "2025-03-08")
    with pytest.raises(InvalidShift):
        time_off_service.request_time_off(" ", "2025-03-08", "2025-03-08")


def test_decisions_are_final(time_off_service):
    notice = time_off_service.request_time_off("E1", "2025-11-05", "2025-11-05")

    approved = time_off_service.approve(notice.id)
    assert approved.status == TimeOffStatus.APPROVED
    with pytest.raises(InvalidTimeOffTransition):
        time_off_service.deny(notice.id)
    with pytest.raises(TimeOffNotFound):
        time_off_service.approve(notice.id + 100)


def test_deny_records_reason(time_off_service):
    notice = time_off_service.request_time_off("E2", "2025-11-05", "2025-11-07", reason="Trip")
    denied = time_off_service.deny(notice.id, reason="Inventory week")
    assert denied.status == TimeOffStatus.DENIED
    assert denied.reason == "Inventory week"


def test_listing(time_off_service):
    first = time_off_service.request_time_off("E1", "2025-11-01", "2025-11-04")
    second = time_off_service.request_time_off("E1", "2025-11-07", "2025-11-07")
    time_off_service.request_time_off("E2", "2025-11-20", "2025-11-21")

    in_week = time_off_service.list_in_range("2025-11-03", "2025-11-09")
    assert [n.id for n in in_week] == [first.id, second.id]
    assert [n.id for n in time_off_service.list_for_employee("E1")] == [second.id, first.id]
    assert time_off_service.list_in_range("2025-11-03", "2025-11-09", employee_id="E2") == []
