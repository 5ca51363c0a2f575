"""Unit tests for the session lifecycle state machine."""

from datetime import date, datetime

import pytest

from models import (
    CancelPayload,
    CompletePayload,
    ConflictReason,
    NoShowPayload,
    ReschedulePayload,
    SessionStatus,
    StartPayload,
)
from scheduler.config import EngineConfig
from scheduler.errors import InvalidInputError, InvalidStateError, NotFoundError, SlotUnavailableError
from scheduler.lifecycle import SessionLifecycle

from .conftest import ASSIGNMENT, MONDAY, THERAPIST, make_session


def build(session_store, assignment_store, checker, suggester, now, **config):
    cfg = EngineConfig(**config)
    return SessionLifecycle(session_store, assignment_store, checker, suggester, cfg, clock=lambda: now)


@pytest.fixture
def lifecycle(session_store, assignment_store, checker, suggester, now):
    return build(session_store, assignment_store, checker, suggester, now)


@pytest.fixture
def session(session_store):
    return session_store.insert(make_session(scheduled_time="10:00", duration_minutes=60))


def test_start_sets_in_progress(lifecycle, session, now):
    started = lifecycle.start(session.id, StartPayload())
    assert started.status == SessionStatus.IN_PROGRESS
    assert started.started_at == now


@pytest.mark.parametrize("started_at", [
    datetime(2025, 1, 6, 9, 0),
    datetime(2025, 1, 6, 12, 30),
])
def test_start_outside_window_is_refused(lifecycle, session, started_at):
    with pytest.raises(InvalidStateError):
        lifecycle.start(session.id, StartPayload(started_at=started_at))


def test_start_window_can_be_disabled(session_store, assignment_store, checker, suggester, now, session):
    lifecycle = build(session_store, assignment_store, checker, suggester, now, enforce_start_window=False)
    started = lifecycle.start(session.id, StartPayload(started_at=datetime(2025, 1, 6, 7, 0)))
    assert started.status == SessionStatus.IN_PROGRESS


def test_complete_derives_duration_from_start(lifecycle, session, assignment_store):
    lifecycle.start(session.id, StartPayload(started_at=datetime(2025, 1, 6, 10, 0)))
    done = lifecycle.complete(session.id, CompletePayload(completed_at=datetime(2025, 1, 6, 10, 50)))

    assert done.status == SessionStatus.COMPLETED
    assert done.actual_duration_minutes == 50
    assert assignment_store.get(ASSIGNMENT).completed_sessions == 1


def test_complete_with_explicit_duration_and_notes(lifecycle, session):
    lifecycle.start(session.id, StartPayload(notes="Patient arrived on time"))
    done = lifecycle.complete(session.id, CompletePayload(actual_duration_minutes=45, notes="Good progress"))

    assert done.actual_duration_minutes == 45
    assert "Patient arrived on time" in done.notes
    assert "Good progress" in done.notes


def test_complete_rejects_implausible_duration(lifecycle, session):
    lifecycle.start(session.id, StartPayload())
    with pytest.raises(InvalidInputError):
        lifecycle.complete(session.id, CompletePayload(actual_duration_minutes=301))


def test_complete_from_scheduled_needs_flag(session_store, assignment_store, checker, suggester, now, session):
    lifecycle = build(session_store, assignment_store, checker, suggester, now)
    with pytest.raises(InvalidStateError):
        lifecycle.complete(session.id, CompletePayload())

    relaxed = build(session_store, assignment_store, checker, suggester, now, allow_complete_from_scheduled=True)
    done = relaxed.complete(session.id, CompletePayload())
    assert done.actual_duration_minutes == 60


def test_cancel_scheduled_session(lifecycle, session, now, checker):
    cancelled = lifecycle.cancel(session.id, CancelPayload(reason="Patient unwell"))

    assert cancelled.status == SessionStatus.CANCELLED
    assert cancelled.cancelled_at == now
    assert cancelled.cancellation_reason == "Patient unwell"
    # Slot is free again
    assert checker.check(THERAPIST, MONDAY, "10:00", 60).available


def test_cancel_in_progress_needs_flag(session_store, assignment_store, checker, suggester, now, session):
    lifecycle = build(session_store, assignment_store, checker, suggester, now)
    lifecycle.start(session.id, StartPayload())
    with pytest.raises(InvalidStateError):
        lifecycle.cancel(session.id, CancelPayload())

    relaxed = build(session_store, assignment_store, checker, suggester, now, allow_cancel_in_progress=True)
    assert relaxed.cancel(session.id, CancelPayload()).status == SessionStatus.CANCELLED


@pytest.mark.parametrize("status", [SessionStatus.COMPLETED, SessionStatus.CANCELLED])
def test_terminal_sessions_cannot_be_modified(lifecycle, session_store, status):
    closed = session_store.insert(make_session(status=status))

    with pytest.raises(InvalidStateError, match="can no longer be modified"):
        lifecycle.cancel(closed.id, CancelPayload())
    with pytest.raises(InvalidStateError):
        lifecycle.reschedule(closed.id, ReschedulePayload(new_time="14:00"))


def test_no_show(lifecycle, session, checker):
    marked = lifecycle.mark_no_show(session.id, NoShowPayload(notes="No call"))
    assert marked.status == SessionStatus.NO_SHOW
    assert checker.check(THERAPIST, MONDAY, "10:00", 60).available

    with pytest.raises(InvalidStateError):
        lifecycle.start(session.id, StartPayload())


def test_reschedule_moves_session_and_records_origin(lifecycle, session, now):
    moved = lifecycle.reschedule(session.id, ReschedulePayload(new_time="14:00", reason="patient request"))

    assert moved.scheduled_time == "14:00"
    assert moved.rescheduled_from.original_time == "10:00"
    assert moved.rescheduled_from.original_date == MONDAY
    assert moved.rescheduled_from.reschedule_count == 1
    assert moved.rescheduled_from.rescheduled_at == now
    assert "Rescheduled: patient request" in moved.notes


def test_second_reschedule_keeps_first_origin(lifecycle, session):
    lifecycle.reschedule(session.id, ReschedulePayload(new_time="14:00"))
    moved = lifecycle.reschedule(session.id, ReschedulePayload(new_date=date(2025, 1, 7)))

    assert moved.scheduled_date == date(2025, 1, 7)
    assert moved.scheduled_time == "14:00"
    assert moved.rescheduled_from.original_time == "10:00"
    assert moved.rescheduled_from.original_date == MONDAY
    assert moved.rescheduled_from.reschedule_count == 2


def test_reschedule_may_overlap_its_own_old_slot(lifecycle, session):
    moved = lifecycle.reschedule(session.id, ReschedulePayload(new_time="10:15"))
    assert moved.scheduled_time == "10:15"


def test_reschedule_into_conflict(lifecycle, session_store, session):
    other = session_store.insert(make_session(scheduled_time="14:00", patient_id="pt_0099"))

    with pytest.raises(SlotUnavailableError) as exc_info:
        lifecycle.reschedule(session.id, ReschedulePayload(new_time="14:30"))

    err = exc_info.value
    assert err.code == ConflictReason.SLOT_TAKEN.value
    assert err.result.conflicting_session_id == other.id
    assert err.result.suggestions
    # Nothing moved
    assert session_store.get(session.id).scheduled_time == "10:00"


def test_reschedule_to_day_off(lifecycle, session):
    with pytest.raises(SlotUnavailableError) as exc_info:
        lifecycle.reschedule(session.id, ReschedulePayload(new_date=date(2025, 1, 11)))
    assert exc_info.value.code == "NO_SCHEDULE"


def test_reschedule_to_same_slot_succeeds(lifecycle, session):
    moved = lifecycle.reschedule(
        session.id, ReschedulePayload(new_date=MONDAY, new_time="10:00", reason="confirmed")
    )

    assert (moved.scheduled_date, moved.scheduled_time, moved.duration_minutes) == (MONDAY, "10:00", 60)
    assert moved.rescheduled_from.original_time == "10:00"
    assert moved.rescheduled_from.reschedule_count == 1
    assert "Rescheduled: confirmed" in moved.notes


def test_unknown_session(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.start("missing", StartPayload())
