"""
Hard Constraint Validation Logic.

This module answers the binary question: "Can Therapist X be booked at Time Y?"
It reconciles three independent constraint sources:
1. Weekly working window
2. Break period
3. Previously booked sessions (each padded by the minimum gap)

It performs no writes, so it is safe to call repeatedly for many candidates.
"""

import logging
from datetime import date as date_type
from typing import List, Optional, Sequence

from models import (
    MAX_SESSION_MINUTES,
    MIN_SESSION_MINUTES,
    AvailabilityResult,
    BookedSession,
    ConflictReason,
    DayOfWeek,
    WeeklyScheduleEntry,
)

from .config import EngineConfig
from .errors import InvalidInputError
from .intervals import coerce_date, overlaps, to_minutes, within
from .stores import BookedSessionStore, BookingQuery, WeeklyScheduleStore

logger = logging.getLogger(__name__)


def validate_duration(duration_minutes: int) -> int:
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidInputError(f"Duration must be an integer number of minutes, got {duration_minutes!r}")
    if not MIN_SESSION_MINUTES <= duration_minutes <= MAX_SESSION_MINUTES:
        raise InvalidInputError(
            f"Duration must be between {MIN_SESSION_MINUTES} and {MAX_SESSION_MINUTES} minutes"
        )
    return duration_minutes


def evaluate_slot(
    schedule: WeeklyScheduleEntry,
    bookings: Sequence[BookedSession],
    slot_start: int,
    slot_end: int,
    gap_minutes: int
) -> AvailabilityResult:
    """
    Pure check of one slot against an already-fetched day.
    ``bookings`` must already exclude the session being rescheduled.
    """
    if not within(slot_start, slot_end, schedule.start_minutes, schedule.end_minutes):
        return AvailabilityResult.blocked(
            ConflictReason.OUTSIDE_WORKING_HOURS,
            f"Session time is outside working hours ({schedule.start_time} - {schedule.end_time})"
        )

    break_window = schedule.break_window
    if break_window and overlaps(slot_start, slot_end, *break_window):
        return AvailabilityResult.blocked(
            ConflictReason.BREAK_CONFLICT,
            f"Time conflicts with therapist break ({schedule.break_start} - {schedule.break_end})"
        )

    # Gap is a trailing buffer on every session, including the candidate
    for existing in bookings:
        if overlaps(slot_start, slot_end + gap_minutes,
                    existing.start_minutes, existing.end_minutes + gap_minutes):
            return AvailabilityResult.blocked(
                ConflictReason.SLOT_TAKEN,
                f"Overlaps with existing session at {existing.scheduled_time} "
                f"({existing.duration_minutes} min, {gap_minutes} min gap required)",
                conflicting_session_id=existing.id
            )

    return AvailabilityResult.ok()


def booking_rule_violations(day: date_type, today: date_type, config: EngineConfig) -> List[str]:
    """Clinic booking policy checks; every rule is disabled unless configured."""
    violations = []
    days_ahead = (day - today).days

    if config.min_advance_booking_days is not None and days_ahead < config.min_advance_booking_days:
        violations.append(
            f"Session must be booked at least {config.min_advance_booking_days} days in advance"
        )
    if config.max_advance_booking_days is not None and days_ahead > config.max_advance_booking_days:
        violations.append(
            f"Session cannot be booked more than {config.max_advance_booking_days} days in advance"
        )
    if not config.allow_weekends and day.weekday() >= 5:
        violations.append("Weekend scheduling is not allowed")

    return violations


class AvailabilityChecker:
    """
    Validates hard constraints for a single therapist booking.
    """

    def __init__(
        self,
        schedules: WeeklyScheduleStore,
        sessions: BookedSessionStore,
        config: Optional[EngineConfig] = None
    ):
        self.schedules = schedules
        self.sessions = sessions
        self.config = config or EngineConfig()

    def check(
        self,
        therapist_id: str,
        date: date_type,
        time: str,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None
    ) -> AvailabilityResult:
        """
        Master validation function.
        Raises InvalidInputError for malformed input before touching any store;
        every other outcome comes back as an AvailabilityResult.
        """
        day = coerce_date(date)
        slot_start = to_minutes(time)
        slot_end = slot_start + validate_duration(duration_minutes)

        # 1. Weekly schedule
        schedule = self.get_schedule(therapist_id, day)
        if schedule is None:
            return AvailabilityResult.blocked(
                ConflictReason.NO_SCHEDULE,
                f"Therapist not scheduled on {DayOfWeek.from_date(day).value}"
            )

        # 2-4. Window, break, existing bookings
        bookings = self.get_bookings(therapist_id, day, exclude_session_id)
        result = evaluate_slot(schedule, bookings, slot_start, slot_end, self.gap_for(schedule))

        if not result.available:
            logger.debug(f"{therapist_id} {day} {time}+{duration_minutes}: {result.reason.value}")
        return result

    # --- Query Helpers (also used by the suggester) ---

    def get_schedule(self, therapist_id: str, day: date_type) -> Optional[WeeklyScheduleEntry]:
        schedule = self.schedules.get_active_schedule(therapist_id, DayOfWeek.from_date(day))
        if schedule is None or not schedule.is_active:
            return None
        return schedule

    def get_bookings(
        self,
        therapist_id: str,
        day: date_type,
        exclude_session_id: Optional[str] = None
    ) -> List[BookedSession]:
        query = (
            BookingQuery(therapist_id, day)
            .with_statuses(self.config.blocking_statuses)
            .excluding(exclude_session_id)
        )
        return self.sessions.list_bookings(query)

    def gap_for(self, schedule: WeeklyScheduleEntry) -> int:
        if schedule.min_gap_minutes is None:
            return self.config.default_gap_minutes
        return schedule.min_gap_minutes
