"""
Recurrence request models for the Therapy Session Scheduler.

This module defines the 'Demand' side: how often sessions should occur,
on which weekdays, and at which times of day.
"""

from datetime import date as date_type
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from scheduler.intervals import normalize_time

from .resource import DayOfWeek

MIN_SESSION_MINUTES = 15
MAX_SESSION_MINUTES = 480


class Frequency(str, Enum):
    """Stepping cadence for bulk scheduling."""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"


class TimeSlotTemplate(BaseModel):
    """A time of day plus duration, stamped onto every qualifying date."""
    time: str = Field(description="Session start (HH:mm)")
    duration_minutes: int = Field(ge=MIN_SESSION_MINUTES, le=MAX_SESSION_MINUTES)

    @field_validator('time')
    @classmethod
    def normalize(cls, v):
        return normalize_time(v)


class RecurrenceSpec(BaseModel):
    """Date range, cadence and time-slot templates to expand into candidates."""
    start_date: date_type
    end_date: date_type
    frequency: Frequency
    days_of_week: List[DayOfWeek] = Field(
        default_factory=list,
        description="Weekday whitelist. Empty means every stepped date qualifies."
    )
    time_slots: List[TimeSlotTemplate] = Field(min_length=1)

    @model_validator(mode='after')
    def validate_range(self):
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class BulkScheduleRequest(RecurrenceSpec):
    """A recurrence spec bound to the service assignment it books under."""
    service_assignment_id: str = Field(min_length=1)
    notes: Optional[str] = Field(default=None, max_length=2000)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "service_assignment_id": "asg_0001",
            "start_date": "2025-01-06",
            "end_date": "2025-02-28",
            "frequency": "WEEKLY",
            "days_of_week": ["MONDAY", "THURSDAY"],
            "time_slots": [{"time": "10:00", "duration_minutes": 45}],
            "notes": "Speech therapy block"
        }
    })


class CandidateSlot(BaseModel):
    """
    Ephemeral (date, time, duration) proposal.
    Never persisted: it is either promoted to a BookedSession or discarded.
    """
    date: date_type
    time: str
    duration_minutes: int = Field(ge=MIN_SESSION_MINUTES, le=MAX_SESSION_MINUTES)

    model_config = ConfigDict(frozen=True)
