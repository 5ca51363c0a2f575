"""
Result models returned by the scheduling engine.

"Unavailable" is an expected outcome, so checks and bulk runs report it as
data rather than raising.
"""

from datetime import date as date_type
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .activity import CandidateSlot
from .schedule import BookedSession


class ConflictReason(str, Enum):
    """Why a requested slot cannot be booked."""
    NO_SCHEDULE = "NO_SCHEDULE"
    OUTSIDE_WORKING_HOURS = "OUTSIDE_WORKING_HOURS"
    BREAK_CONFLICT = "BREAK_CONFLICT"
    SLOT_TAKEN = "SLOT_TAKEN"


class AvailabilityResult(BaseModel):
    """Outcome of a single availability check."""
    available: bool
    reason: Optional[ConflictReason] = None
    message: Optional[str] = None
    conflicting_session_id: Optional[str] = None
    suggestions: List[CandidateSlot] = Field(default_factory=list)

    @classmethod
    def ok(cls) -> "AvailabilityResult":
        return cls(available=True)

    @classmethod
    def blocked(
        cls,
        reason: ConflictReason,
        message: str,
        conflicting_session_id: Optional[str] = None
    ) -> "AvailabilityResult":
        return cls(
            available=False,
            reason=reason,
            message=message,
            conflicting_session_id=conflicting_session_id
        )


class SchedulingError(BaseModel):
    """A bulk-run candidate that could not be booked, with alternatives."""
    date: date_type
    time: str
    duration_minutes: int
    reason: ConflictReason
    message: str
    conflicting_session_id: Optional[str] = None
    suggestions: List[CandidateSlot] = Field(default_factory=list)


class BulkScheduleResult(BaseModel):
    """
    Aggregate outcome of a bulk scheduling run.
    Invariant: len(created_sessions) + len(errors) == evaluated_count.
    Candidates skipped after the budget ran out are in neither list.
    """
    service_assignment_id: str
    created_sessions: List[BookedSession] = Field(default_factory=list)
    errors: List[SchedulingError] = Field(default_factory=list)
    skipped_candidates: List[CandidateSlot] = Field(default_factory=list)
    evaluated_count: int = 0
    budget_exhausted: bool = False

    @property
    def created_count(self) -> int:
        return len(self.created_sessions)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_candidates)

    @property
    def message(self) -> str:
        text = (
            f"{self.created_count} of {self.evaluated_count} sessions created, "
            f"{len(self.errors)} conflicts"
        )
        if self.budget_exhausted:
            text += f", {self.skipped_count} skipped (session budget exhausted)"
        return text

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "service_assignment_id": "asg_0001",
            "created_sessions": [],
            "errors": [{
                "date": "2025-01-13",
                "time": "12:30",
                "duration_minutes": 60,
                "reason": "BREAK_CONFLICT",
                "message": "Time conflicts with therapist break (12:00 - 13:00)",
                "suggestions": [{"date": "2025-01-13", "time": "09:00", "duration_minutes": 60}]
            }],
            "skipped_candidates": [],
            "evaluated_count": 1,
            "budget_exhausted": False
        }
    })
