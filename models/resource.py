"""
Schedule data models for the Therapy Session Scheduler.

This module defines the 'Supply' side of the scheduler:
the weekly working windows of each therapist, with optional break periods
and the minimum gap required after every session.
"""

from datetime import date as date_type
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from scheduler.intervals import normalize_time, to_minutes


class DayOfWeek(str, Enum):
    """Calendar weekdays, in ``date.weekday()`` order."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, value: date_type) -> "DayOfWeek":
        return _WEEK[value.weekday()]


_WEEK: List[DayOfWeek] = list(DayOfWeek)


class WeeklyScheduleEntry(BaseModel):
    """
    One therapist's working window for one weekday.
    A therapist's week is replaced wholesale; the engine only reads it.
    """
    therapist_id: str = Field(min_length=1, description="Owning therapist")
    day_of_week: DayOfWeek = Field(description="Weekday this window applies to")
    start_time: str = Field(description="Shift start (HH:mm)")
    end_time: str = Field(description="Shift end (HH:mm)")

    break_start: Optional[str] = Field(default=None, description="Break start (HH:mm)")
    break_end: Optional[str] = Field(default=None, description="Break end (HH:mm)")

    # None means "use EngineConfig.default_gap_minutes"
    min_gap_minutes: Optional[int] = Field(
        default=None,
        ge=0,
        le=240,
        description="Minimum free minutes required after each session"
    )
    is_active: bool = Field(default=True)

    @field_validator('start_time', 'end_time', 'break_start', 'break_end')
    @classmethod
    def normalize_times(cls, v):
        if v is None:
            return v
        return normalize_time(v)

    @model_validator(mode='after')
    def validate_window(self):
        if to_minutes(self.start_time) >= to_minutes(self.end_time):
            raise ValueError("End time must be strictly after start time")

        if (self.break_start is None) != (self.break_end is None):
            raise ValueError("Both break_start and break_end must be provided together")

        if self.break_start and self.break_end:
            b_start, b_end = to_minutes(self.break_start), to_minutes(self.break_end)
            if b_start >= b_end:
                raise ValueError("Break end must be strictly after break start")
            if b_start <= self.start_minutes or b_end >= self.end_minutes:
                raise ValueError("Break must sit strictly inside the working window")
        return self

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return to_minutes(self.end_time)

    @property
    def break_window(self) -> Optional[Tuple[int, int]]:
        """Break as a half-open minute interval, if the day has one."""
        if self.break_start and self.break_end:
            return to_minutes(self.break_start), to_minutes(self.break_end)
        return None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "therapist_id": "th_speech_01",
            "day_of_week": "MONDAY",
            "start_time": "09:00",
            "end_time": "17:00",
            "break_start": "12:00",
            "break_end": "13:00",
            "min_gap_minutes": 15,
            "is_active": True
        }
    })
