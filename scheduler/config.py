"""Engine configuration with environment variable overrides."""

from typing import Dict, FrozenSet, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from models import Frequency, SessionStatus


class EngineConfig(BaseSettings):
    """
    Tunables passed into the engine at construction time.
    Every field can be overridden with a SCHEDULER_-prefixed env var.
    """

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_", extra="ignore")

    # Gap required after each session when the weekly entry doesn't set one
    default_gap_minutes: int = Field(default=15, ge=0, le=240)

    # Suggestions
    suggestion_count: int = Field(default=3, ge=0, le=10)
    suggestion_lookahead_days: int = Field(default=7, ge=0, le=31)

    # Open-slot listing granularity
    slot_step_minutes: int = Field(default=15, ge=5, le=120)

    # Recurrence stepping
    frequency_step_days: Dict[Frequency, int] = Field(default_factory=lambda: {
        Frequency.DAILY: 1,
        Frequency.WEEKLY: 7,
        Frequency.BIWEEKLY: 14,
    })

    # Statuses that occupy a therapist's time
    blocking_statuses: FrozenSet[SessionStatus] = frozenset({
        SessionStatus.SCHEDULED,
        SessionStatus.IN_PROGRESS,
    })

    # Lifecycle
    enforce_start_window: bool = True
    early_start_minutes: int = Field(default=30, ge=0)
    late_start_minutes: int = Field(default=120, ge=0)
    max_actual_duration_minutes: int = Field(default=300, ge=1)
    allow_complete_from_scheduled: bool = False
    allow_cancel_in_progress: bool = False

    # Single-booking policy, all off by default
    min_advance_booking_days: Optional[int] = Field(default=None, ge=0)
    max_advance_booking_days: Optional[int] = Field(default=None, ge=0)
    allow_weekends: bool = True

    def step_days(self, frequency: Frequency) -> int:
        return self.frequency_step_days[frequency]
