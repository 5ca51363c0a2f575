"""
Lifecycle action payloads for booked sessions.
"""

from datetime import date as date_type, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from scheduler.intervals import normalize_time, require_naive

from .activity import MAX_SESSION_MINUTES, MIN_SESSION_MINUTES


class SessionAction(str, Enum):
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    NO_SHOW = "no_show"
    RESCHEDULE = "reschedule"


class StartPayload(BaseModel):
    started_at: Optional[datetime] = Field(default=None, description="Defaults to now")
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('started_at')
    @classmethod
    def local_time_only(cls, v):
        return require_naive(v)


class CompletePayload(BaseModel):
    completed_at: Optional[datetime] = Field(default=None, description="Defaults to now")
    actual_duration_minutes: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator('completed_at')
    @classmethod
    def local_time_only(cls, v):
        return require_naive(v)


class CancelPayload(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class NoShowPayload(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=1000)


class ReschedulePayload(BaseModel):
    """Any field left as None keeps the session's current value."""
    new_date: Optional[date_type] = None
    new_time: Optional[str] = None
    new_duration_minutes: Optional[int] = Field(
        default=None, ge=MIN_SESSION_MINUTES, le=MAX_SESSION_MINUTES
    )
    reason: Optional[str] = Field(default=None, max_length=1000)

    @field_validator('new_time')
    @classmethod
    def normalize(cls, v):
        if v is None:
            return v
        return normalize_time(v)


PAYLOAD_TYPES = {
    SessionAction.START: StartPayload,
    SessionAction.COMPLETE: CompletePayload,
    SessionAction.CANCEL: CancelPayload,
    SessionAction.NO_SHOW: NoShowPayload,
    SessionAction.RESCHEDULE: ReschedulePayload,
}
