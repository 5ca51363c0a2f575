"""
Session data models for the Therapy Session Scheduler.

This module defines the 'Output' of the scheduling engine:
booked sessions and the service assignments that cap how many may exist.
"""

import uuid
from datetime import date as date_type, datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scheduler.intervals import normalize_time, to_minutes

from .activity import MAX_SESSION_MINUTES, MIN_SESSION_MINUTES


class SessionStatus(str, Enum):
    """Lifecycle status of a booked session."""
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


def _new_session_id() -> str:
    return uuid.uuid4().hex


class RescheduleRecord(BaseModel):
    """Where a session was originally booked, and the latest move."""
    original_date: date_type
    original_time: str
    original_duration_minutes: int
    rescheduled_at: datetime
    reason: Optional[str] = None
    reschedule_count: int = Field(default=1, ge=1)


class BookedSession(BaseModel):
    """
    A committed therapy session.
    Occupies the half-open interval [scheduled_time, scheduled_time + duration).
    """

    # --- Core Identity ---
    id: str = Field(default_factory=_new_session_id)
    therapist_id: str = Field(min_length=1)
    patient_id: str = Field(min_length=1)
    service_assignment_id: str = Field(min_length=1)

    # --- Scheduling Data ---
    scheduled_date: date_type
    scheduled_time: str = Field(description="Start time (HH:mm)")
    duration_minutes: int = Field(ge=MIN_SESSION_MINUTES, le=MAX_SESSION_MINUTES)
    status: SessionStatus = Field(default=SessionStatus.SCHEDULED)
    notes: Optional[str] = None

    # --- Lifecycle Stamps ---
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    actual_duration_minutes: Optional[int] = None

    rescheduled_from: Optional[RescheduleRecord] = None

    @field_validator('scheduled_time')
    @classmethod
    def normalize(cls, v):
        return normalize_time(v)

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.scheduled_time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes

    @property
    def scheduled_start(self) -> datetime:
        """Local clinic datetime at which the session is due to begin."""
        return datetime.combine(self.scheduled_date, datetime.min.time()) + timedelta(
            minutes=self.start_minutes
        )

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "5f0c7e0a9b3d4c1f8e2a6b7c9d0e1f2a",
            "therapist_id": "th_speech_01",
            "patient_id": "pt_0042",
            "service_assignment_id": "asg_0001",
            "scheduled_date": "2025-01-06",
            "scheduled_time": "10:00",
            "duration_minutes": 45,
            "status": "SCHEDULED",
            "notes": "Bulk scheduled session for assignment asg_0001"
        }
    })


class AssignmentStatus(str, Enum):
    """Status of the service assignment a session is booked under."""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ServiceAssignment(BaseModel):
    """
    External record capping how many sessions a treatment proposal may book.
    """
    id: str = Field(min_length=1)
    therapist_id: str = Field(min_length=1)
    patient_id: str = Field(min_length=1)
    total_sessions: int = Field(ge=0)
    completed_sessions: int = Field(default=0, ge=0)
    status: AssignmentStatus = Field(default=AssignmentStatus.ACTIVE)

    @property
    def remaining_sessions(self) -> int:
        return max(0, self.total_sessions - self.completed_sessions)

    @property
    def is_bookable(self) -> bool:
        return self.status == AssignmentStatus.ACTIVE and self.remaining_sessions > 0
