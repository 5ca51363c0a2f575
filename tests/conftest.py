"""Pytest configuration and fixtures."""

from datetime import date, datetime

import pytest

from models import (
    AssignmentStatus,
    BookedSession,
    DayOfWeek,
    ServiceAssignment,
    SessionStatus,
    WeeklyScheduleEntry,
)
from scheduler.config import EngineConfig
from scheduler.constraints import AvailabilityChecker
from scheduler.scoring import SlotSuggester
from scheduler.service import SchedulingService
from scheduler.stores import InMemoryAssignmentStore, InMemoryScheduleStore, InMemorySessionStore

THERAPIST = "th_speech_01"
PATIENT = "pt_0042"
ASSIGNMENT = "asg_0001"

# 2025-01-06 is a Monday
MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)
SATURDAY = date(2025, 1, 11)

WEEKDAYS = [
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
]


def make_session(
    scheduled_date=MONDAY,
    scheduled_time="10:00",
    duration_minutes=60,
    status=SessionStatus.SCHEDULED,
    **overrides
) -> BookedSession:
    fields = dict(
        therapist_id=THERAPIST,
        patient_id=PATIENT,
        service_assignment_id=ASSIGNMENT,
        scheduled_date=scheduled_date,
        scheduled_time=scheduled_time,
        duration_minutes=duration_minutes,
        status=status,
    )
    fields.update(overrides)
    return BookedSession(**fields)


@pytest.fixture
def config() -> EngineConfig:
    """Defaults: 15 min gap, 3 suggestions, 7 day lookahead."""
    return EngineConfig()


@pytest.fixture
def weekly_entries():
    """Mon-Fri 09:00-17:00 with a 12:00-13:00 break and a 15 min gap."""
    return [
        WeeklyScheduleEntry(
            therapist_id=THERAPIST,
            day_of_week=day,
            start_time="09:00",
            end_time="17:00",
            break_start="12:00",
            break_end="13:00",
            min_gap_minutes=15,
        )
        for day in WEEKDAYS
    ]


@pytest.fixture
def schedule_store(weekly_entries) -> InMemoryScheduleStore:
    return InMemoryScheduleStore(weekly_entries)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def assignment_store() -> InMemoryAssignmentStore:
    return InMemoryAssignmentStore([
        ServiceAssignment(
            id=ASSIGNMENT,
            therapist_id=THERAPIST,
            patient_id=PATIENT,
            total_sessions=20,
        ),
        ServiceAssignment(
            id="asg_small",
            therapist_id=THERAPIST,
            patient_id=PATIENT,
            total_sessions=4,
        ),
        ServiceAssignment(
            id="asg_paused",
            therapist_id=THERAPIST,
            patient_id=PATIENT,
            total_sessions=10,
            status=AssignmentStatus.PAUSED,
        ),
        ServiceAssignment(
            id="asg_done",
            therapist_id=THERAPIST,
            patient_id=PATIENT,
            total_sessions=6,
            completed_sessions=6,
        ),
    ])


@pytest.fixture
def checker(schedule_store, session_store, config) -> AvailabilityChecker:
    return AvailabilityChecker(schedule_store, session_store, config)


@pytest.fixture
def suggester(checker) -> SlotSuggester:
    return SlotSuggester(checker)


@pytest.fixture
def now():
    """Fixed 'current time' used by lifecycle stamps."""
    return datetime(2025, 1, 6, 9, 55)


@pytest.fixture
def service(schedule_store, session_store, assignment_store, config, now) -> SchedulingService:
    return SchedulingService(
        schedules=schedule_store,
        sessions=session_store,
        assignments=assignment_store,
        config=config,
        clock=lambda: now,
    )
