"""
Publishing, draft editing and week status.
"""

from datetime import date, datetime, timezone

import pytest

from conftest import WEDNESDAY, WEEK_END, WEEK_START, local
from core.exceptions import ConflictError, InvalidDate, InvalidShift, ShiftNotFound
from models.shift import ShiftStatus
from models.time_off import TimeOffStatus
from services.publication import PublicationEngine, PublicationState, dedup_key
from utils.timezone_helpers import resolve_range

WEEK = resolve_range(WEEK_START, WEEK_END)
THURSDAY = date(2025, 11, 6)


@pytest.fixture
def week_with_one_conflict(store, day_off):
    """Three E1/E2 drafts, one of them on E1's approved day off."""
    conflicting = store.create_draft("E1", local(WEDNESDAY, 10), local(WEDNESDAY, 16), "SPH")
    clean = [
        store.create_draft("E1", local(THURSDAY, 9), local(THURSDAY, 17), "SPH"),
        store.create_draft("E2", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH"),
    ]
    day_off("E1", WEDNESDAY, reason="Family event", status=TimeOffStatus.APPROVED)
    return conflicting, clean


def test_strict_publish_aborts_on_conflict(publication, store, week_with_one_conflict):
    conflicting, _ = week_with_one_conflict

    result = publication.publish("2025-11-03", "2025-11-09", strict_mode=True)

    assert result.success is False
    assert result.published_count == 0
    assert [c.shift_id for c in result.conflicts] == [conflicting.id]
    assert result.conflicts[0].employee_name == "Alice Park"
    assert result.conflicts[0].time_off_reason == "Family event"
    assert store.load_published(WEEK) == []


def test_non_strict_publish_holds_back_conflicting_drafts(publication, store, week_with_one_conflict):
    conflicting, clean = week_with_one_conflict

    result = publication.publish(WEEK_START, WEEK_END, strict_mode=False)

    assert result.success is True
    assert result.published_count == 2
    assert result.skipped_count == 0
    assert len(result.conflicts) == 1
    published = store.load_published(WEEK)
    assert {(p.employee_id, p.location) for p in published} == {("E1", "SPH"), ("E2", "SPH")}
    assert all(p.week_start == WEEK_START and p.week_end == WEEK_END for p in published)
    # Drafts survive publishing
    assert len(store.load_drafts(WEEK)) == 3


def test_publish_is_idempotent(publication, store):
    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    store.create_draft(None, local(THURSDAY, 9), local(THURSDAY, 13), "SPH")

    first = publication.publish(WEEK_START, WEEK_END)
    second = publication.publish(WEEK_START, WEEK_END)

    assert first.published_count == 2
    assert second.published_count == 0
    assert second.skipped_count == 2
    assert len(store.load_published(WEEK)) == 2


def test_republish_only_adds_new_drafts(publication, store):
    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    publication.publish(WEEK_START, WEEK_END)
    store.create_draft("E2", local(THURSDAY, 9), local(THURSDAY, 17), "SPH")

    result = publication.publish(WEEK_START, WEEK_END)

    assert (result.published_count, result.skipped_count) == (1, 1)
    assert len(store.load_published(WEEK)) == 2


def test_empty_week_publishes_nothing(publication):
    result = publication.publish(WEEK_START, WEEK_END)
    assert result.success is True
    assert result.published_count == 0
    assert result.conflicts == []


def test_publish_stamps_publication_time(store):
    fixed = datetime(2025, 11, 1, 12, 0, tzinfo=timezone.utc)
    engine = PublicationEngine(store, clock=lambda: fixed)
    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")

    engine.publish(WEEK_START, WEEK_END)

    [row] = store.load_published(WEEK)
    assert row.published_at.replace(tzinfo=timezone.utc) == fixed


def test_publish_rejects_bad_dates(publication):
    with pytest.raises(InvalidDate):
        publication.publish("2025-11-09", "2025-11-03")
    with pytest.raises(InvalidDate):
        publication.publish("2025-13-01", "2025-13-07")


def test_open_shift_dedup_key_includes_end_and_location(store):
    a = store.create_draft(None, local(WEDNESDAY, 9), local(WEDNESDAY, 13), "SPH")
    b = store.create_draft(None, local(WEDNESDAY, 9), local(WEDNESDAY, 13), "OFFICE")
    c = store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 13), "SPH")
    d = store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "OFFICE")
    assert dedup_key(a) != dedup_key(b)
    assert dedup_key(c) == dedup_key(d)


def test_week_status_tracks_publication_state(publication, store, day_off):
    status = publication.week_status(WEEK_START, WEEK_END)
    assert status.state == PublicationState.UNPUBLISHED
    assert status.can_publish is False

    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    publication.publish(WEEK_START, WEEK_END)
    status = publication.week_status(WEEK_START, WEEK_END)
    assert status.state == PublicationState.PUBLISHED
    assert status.is_published is True
    assert (status.draft_shifts, status.published_shifts, status.total_shifts) == (1, 1, 2)

    store.create_draft("E2", local(THURSDAY, 9), local(THURSDAY, 17), "SPH")
    day_off("E2", THURSDAY)
    status = publication.week_status(WEEK_START, WEEK_END)
    assert status.state == PublicationState.PARTIALLY_PUBLISHED
    assert status.conflicts == 1
    assert status.can_publish is False


def test_clear_drafts(publication, store):
    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    store.create_draft("E2", local(THURSDAY, 9), local(THURSDAY, 17), "SPH")
    publication.publish(WEEK_START, WEEK_END)

    assert publication.clear_drafts(WEEK_START, WEEK_END) == 2
    assert store.load_drafts(WEEK) == []
    assert len(store.load_published(WEEK)) == 2


# --- Draft editing ---


def test_create_shift_rejects_assignment_on_day_off(publication, day_off):
    day_off("E1", WEDNESDAY, reason="Jury duty", status=TimeOffStatus.APPROVED)

    with pytest.raises(ConflictError) as excinfo:
        publication.create_shift(local(WEDNESDAY, 10), local(WEDNESDAY, 18), "SPH", employee_id="E1")

    assert excinfo.value.reason == "Jury duty"
    assert excinfo.value.employee_name == "Alice Park"
    assert excinfo.value.shift_date == WEDNESDAY


def test_create_shift_allows_denied_days_and_open_shifts(publication, day_off):
    day_off("E1", WEDNESDAY, status=TimeOffStatus.DENIED)
    day_off("E2", WEDNESDAY)

    assigned = publication.create_shift(local(WEDNESDAY, 10), local(WEDNESDAY, 18), "SPH", employee_id="E1")
    open_shift = publication.create_shift(local(WEDNESDAY, 10), local(WEDNESDAY, 18), "SPH")

    assert assigned.employee_id == "E1"
    assert open_shift.is_open


def test_create_shift_reads_naive_times_as_local(publication):
    draft = publication.create_shift(datetime(2025, 11, 5, 9), datetime(2025, 11, 5, 17), " SPH ")
    assert draft.start_time.replace(tzinfo=timezone.utc) == datetime(2025, 11, 5, 14, tzinfo=timezone.utc)
    assert draft.location == "SPH"


@pytest.mark.parametrize(
    "start_hour, end_hour, location",
    [(17, 9, "SPH"), (9, 9, "SPH"), (9, 17, ""), (9, 17, "   ")],
)
def test_create_shift_validates_fields(publication, start_hour, end_hour, location):
    with pytest.raises(InvalidShift):
        publication.create_shift(local(WEDNESDAY, start_hour), local(WEDNESDAY, end_hour), location)


def test_update_draft_rechecks_time_off_when_assignment_changes(publication, store, day_off):
    draft = store.create_draft("E1", local(THURSDAY, 9), local(THURSDAY, 17), "SPH")
    day_off("E2", THURSDAY)

    with pytest.raises(ConflictError):
        publication.update_shift(draft.id, {"employee_id": "E2"})

    outcome = publication.update_shift(draft.id, {"location": "OFFICE"})
    assert outcome.forked_from is None
    assert outcome.shift.location == "OFFICE"


def test_update_rejects_unknown_or_cleared_fields(publication, store):
    draft = store.create_draft("E1", local(THURSDAY, 9), local(THURSDAY, 17), "SPH")
    with pytest.raises(InvalidShift):
        publication.update_shift(draft.id, {"status": "published"})
    with pytest.raises(InvalidShift):
        publication.update_shift(draft.id, {"location": None})
    with pytest.raises(InvalidShift):
        publication.update_shift(draft.id, {"end_time": local(THURSDAY, 8)})


def test_update_of_published_shift_forks_a_draft(publication, store):
    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    publication.publish(WEEK_START, WEEK_END)
    [published] = store.load_published(WEEK)
    # Published ids can overlap draft ids; remove the draft so the id only exists as published
    publication.clear_drafts(WEEK_START, WEEK_END)

    outcome = publication.update_shift(published.id, {"location": "OFFICE"})

    assert outcome.forked_from == published.id
    assert outcome.shift.location == "OFFICE"
    assert outcome.shift.employee_id == "E1"
    assert store.get_published(published.id).location == "SPH"


def test_fork_from_published_checks_time_off(publication, store, day_off):
    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    publication.publish(WEEK_START, WEEK_END)
    [published] = store.load_published(WEEK)
    day_off("E2", WEDNESDAY)

    with pytest.raises(ConflictError):
        publication.fork_from_published(published.id, {"employee_id": "E2"})

    forked = publication.fork_from_published(published.id)
    assert forked.forked_from == published.id
    assert forked.shift.status == ShiftStatus.DRAFT
    assert len(store.load_drafts(WEEK)) == 2


def test_fork_with_same_employee_and_start_is_skipped_on_publish(publication, store, caplog):
    store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    publication.publish(WEEK_START, WEEK_END)
    [published] = store.load_published(WEEK)
    publication.clear_drafts(WEEK_START, WEEK_END)

    with caplog.at_level("WARNING", logger="services.publication"):
        publication.fork_from_published(published.id, {"end_time": local(WEDNESDAY, 13)})
    assert "publishing will skip it" in caplog.text

    result = publication.publish(WEEK_START, WEEK_END)
    assert result.published_count == 0
    assert result.skipped_count == 1
    [unchanged] = store.load_published(WEEK)
    assert unchanged.end_time.replace(tzinfo=timezone.utc) == local(WEDNESDAY, 17)

    # Deleting the published row first lets the edit through
    assert store.delete_published(published.id)
    result = publication.publish(WEEK_START, WEEK_END)
    assert result.published_count == 1
    [replaced] = store.load_published(WEEK)
    assert replaced.end_time.replace(tzinfo=timezone.utc) == local(WEDNESDAY, 13)


def test_update_unknown_shift(publication):
    with pytest.raises(ShiftNotFound):
        publication.update_shift(999, {"location": "OFFICE"})
    with pytest.raises(ShiftNotFound):
        publication.fork_from_published(999)


def test_delete_prefers_drafts_then_published(publication, store):
    draft = store.create_draft("E1", local(WEDNESDAY, 9), local(WEDNESDAY, 17), "SPH")
    publication.publish(WEEK_START, WEEK_END)
    [published] = store.load_published(WEEK)
    assert draft.id == published.id

    assert publication.delete_shift(draft.id).deleted_from == "draft_shifts"
    assert publication.delete_shift(published.id).deleted_from == "published_shifts"
    with pytest.raises(ShiftNotFound):
        publication.delete_shift(published.id)
