"""
Slot Suggestion Engine for the Therapy Session Scheduler.

When a requested slot is rejected, this module proposes alternatives:
1. The first free gap of sufficient length on the same day.
2. The same time on the next working day (within the lookahead).
3. The first free gap on that next day.

It never raises for "nothing found"; an empty list is a valid answer.
"""

import logging
from datetime import date as date_type, timedelta
from typing import List, Optional, Sequence, Tuple

from models import BookedSession, CandidateSlot, WeeklyScheduleEntry

from .constraints import AvailabilityChecker, evaluate_slot, validate_duration
from .intervals import coerce_date, from_minutes, to_minutes

logger = logging.getLogger(__name__)


def first_gap(
    schedule: WeeklyScheduleEntry,
    bookings: Sequence[BookedSession],
    duration_minutes: int,
    gap_minutes: int
) -> Optional[int]:
    """
    Earliest start (in minutes) where a session of ``duration_minutes`` fits.

    Each blocker is (limit, resume): a new session must end by ``limit`` and
    may start again from ``resume``. Bookings need the gap on both sides of the
    new session's end; the break needs none.
    """
    blockers: List[Tuple[int, int]] = []
    if schedule.break_window:
        b_start, b_end = schedule.break_window
        blockers.append((b_start, b_end))
    for s in bookings:
        blockers.append((s.start_minutes - gap_minutes, s.end_minutes + gap_minutes))
    blockers.sort()

    cursor = schedule.start_minutes
    for limit, resume in blockers:
        if min(limit, schedule.end_minutes) - cursor >= duration_minutes:
            return cursor
        cursor = max(cursor, resume)

    if schedule.end_minutes - cursor >= duration_minutes:
        return cursor
    return None


class SlotSuggester:
    """
    Proposes alternative slots for a rejected request.
    """

    def __init__(self, checker: AvailabilityChecker):
        self.checker = checker
        self.config = checker.config

    def suggest(
        self,
        therapist_id: str,
        date: date_type,
        time: str,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None
    ) -> List[CandidateSlot]:
        """Up to ``suggestion_count`` alternatives, same day first."""
        limit = self.config.suggestion_count
        if limit <= 0:
            return []

        day = coerce_date(date)
        suggestions: List[CandidateSlot] = []

        # 1. Same day
        same_day = self._first_gap_on(therapist_id, day, duration_minutes, exclude_session_id)
        if same_day is not None:
            suggestions.append(same_day)

        # 2 & 3. Next working day that offers anything
        for offset in range(1, self.config.suggestion_lookahead_days + 1):
            next_day = day + timedelta(days=offset)
            found = self._next_day_options(therapist_id, next_day, time, duration_minutes, exclude_session_id)
            if found:
                suggestions.extend(found)
                break

        return suggestions[:limit]

    def open_slots(
        self,
        therapist_id: str,
        date: date_type,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None
    ) -> List[str]:
        """Every start time on the step grid that the checker would accept."""
        day = coerce_date(date)
        validate_duration(duration_minutes)
        schedule = self.checker.get_schedule(therapist_id, day)
        if schedule is None:
            return []

        bookings = self.checker.get_bookings(therapist_id, day, exclude_session_id)
        gap = self.checker.gap_for(schedule)
        step = self.config.slot_step_minutes

        slots = []
        current = schedule.start_minutes
        while current + duration_minutes <= schedule.end_minutes:
            result = evaluate_slot(schedule, bookings, current, current + duration_minutes, gap)
            if result.available:
                slots.append(from_minutes(current))
            current += step
        return slots

    def _first_gap_on(
        self,
        therapist_id: str,
        day: date_type,
        duration_minutes: int,
        exclude_session_id: Optional[str]
    ) -> Optional[CandidateSlot]:
        schedule = self.checker.get_schedule(therapist_id, day)
        if schedule is None:
            return None
        bookings = self.checker.get_bookings(therapist_id, day, exclude_session_id)
        start = first_gap(schedule, bookings, duration_minutes, self.checker.gap_for(schedule))
        if start is None:
            return None
        return CandidateSlot(date=day, time=from_minutes(start), duration_minutes=duration_minutes)

    def _next_day_options(
        self,
        therapist_id: str,
        day: date_type,
        time: str,
        duration_minutes: int,
        exclude_session_id: Optional[str]
    ) -> List[CandidateSlot]:
        schedule = self.checker.get_schedule(therapist_id, day)
        if schedule is None:
            return []

        options: List[CandidateSlot] = []
        bookings = self.checker.get_bookings(therapist_id, day, exclude_session_id)
        gap = self.checker.gap_for(schedule)

        start = to_minutes(time)
        if evaluate_slot(schedule, bookings, start, start + duration_minutes, gap).available:
            options.append(CandidateSlot(date=day, time=from_minutes(start), duration_minutes=duration_minutes))

        gap_start = first_gap(schedule, bookings, duration_minutes, gap)
        if gap_start is not None and gap_start != start:
            options.append(CandidateSlot(date=day, time=from_minutes(gap_start), duration_minutes=duration_minutes))

        if not options:
            logger.debug(f"No alternative for {therapist_id} on {day}")
        return options
