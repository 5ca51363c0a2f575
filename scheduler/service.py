"""
Scheduling service facade.

The entry point HTTP handlers call. It wires the checker, suggester,
orchestrator and lifecycle around the three stores and accepts plain
JSON-compatible input (ISO dates, HH:mm times, integer minutes).
"""

import logging
from datetime import date as date_type, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from models import (
    PAYLOAD_TYPES,
    AssignmentStatus,
    AvailabilityResult,
    BookedSession,
    BulkScheduleRequest,
    BulkScheduleResult,
    ConflictReason,
    SessionAction,
    SessionStatus,
    WeeklyScheduleEntry,
)

from .config import EngineConfig
from .constraints import AvailabilityChecker, booking_rule_violations
from .engine import BulkScheduler
from .errors import (
    AssignmentNotBookableError,
    BookingRuleError,
    BudgetExhaustedError,
    InvalidInputError,
    NotFoundError,
    SlotUnavailableError,
)
from .intervals import coerce_date, normalize_time
from .lifecycle import SessionLifecycle
from .scoring import SlotSuggester
from .state import BulkRunState
from .stores import BookedSessionStore, BookingQuery, ServiceAssignmentStore, WeeklyScheduleStore

logger = logging.getLogger(__name__)

DateLike = Union[str, date_type]


class SchedulingService:
    """
    CheckAvailability / ScheduleBulk / TransitionSession, plus the
    single-booking, open-slot listing and week-replacement helpers.
    """

    def __init__(
        self,
        schedules: WeeklyScheduleStore,
        sessions: BookedSessionStore,
        assignments: ServiceAssignmentStore,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config or EngineConfig()
        self.schedules = schedules
        self.sessions = sessions
        self.assignments = assignments
        self.clock = clock

        self.checker = AvailabilityChecker(schedules, sessions, self.config)
        self.suggester = SlotSuggester(self.checker)
        self.bulk = BulkScheduler(self.checker, self.suggester, sessions, assignments, self.config)
        self.lifecycle = SessionLifecycle(
            sessions, assignments, self.checker, self.suggester, self.config, clock
        )
        self.last_run: Optional[BulkRunState] = None

    def check_availability(
        self,
        therapist_id: str,
        date: DateLike,
        time: str,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None
    ) -> AvailabilityResult:
        """Suggestions are attached only when an existing booking is in the way."""
        day = coerce_date(date)
        result = self.checker.check(therapist_id, day, time, duration_minutes, exclude_session_id)
        if result.reason == ConflictReason.SLOT_TAKEN:
            result.suggestions = self.suggester.suggest(
                therapist_id, day, time, duration_minutes, exclude_session_id
            )
        return result

    def list_open_slots(
        self,
        therapist_id: str,
        date: DateLike,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None
    ) -> List[str]:
        return self.suggester.open_slots(therapist_id, date, duration_minutes, exclude_session_id)

    def book_session(
        self,
        service_assignment_id: str,
        date: DateLike,
        time: str,
        duration_minutes: int,
        notes: Optional[str] = None
    ) -> BookedSession:
        """Book one session, or raise with the reason and suggestions."""
        day = coerce_date(date)
        time = normalize_time(time)

        assignment = self.assignments.get(service_assignment_id)
        if assignment is None:
            raise NotFoundError(f"Service assignment {service_assignment_id} not found")
        if assignment.status != AssignmentStatus.ACTIVE:
            raise AssignmentNotBookableError(
                f"Service assignment {service_assignment_id} is {assignment.status.value}"
            )
        if self.assignments.remaining_session_budget(service_assignment_id) <= 0:
            raise BudgetExhaustedError(
                f"Service assignment {service_assignment_id} has no sessions left to book"
            )

        violations = booking_rule_violations(day, self.clock().date(), self.config)
        if violations:
            raise BookingRuleError(violations)

        with self.sessions.booking_lock(assignment.therapist_id, day):
            result = self.checker.check(assignment.therapist_id, day, time, duration_minutes)
            if not result.available:
                result.suggestions = self.suggester.suggest(
                    assignment.therapist_id, day, time, duration_minutes
                )
                raise SlotUnavailableError(result)

            session = self.sessions.insert(BookedSession(
                therapist_id=assignment.therapist_id,
                patient_id=assignment.patient_id,
                service_assignment_id=assignment.id,
                scheduled_date=day,
                scheduled_time=time,
                duration_minutes=duration_minutes,
                status=SessionStatus.SCHEDULED,
                notes=notes
            ))

        logger.info(f"Booked session {session.id} for {assignment.id} on {day} {time}")
        return session

    def schedule_bulk(
        self,
        request: Union[BulkScheduleRequest, Mapping[str, Any]]
    ) -> BulkScheduleResult:
        if not isinstance(request, BulkScheduleRequest):
            try:
                request = BulkScheduleRequest.model_validate(request)
            except ValidationError as exc:
                raise InvalidInputError(f"Invalid bulk schedule request: {exc}") from exc

        self.last_run = self.bulk.run(request)
        return self.last_run.to_result()

    def transition_session(
        self,
        session_id: str,
        action: Union[SessionAction, str],
        payload: Optional[Union[Mapping[str, Any], Any]] = None
    ) -> BookedSession:
        try:
            action = SessionAction(action)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown session action {action!r}") from exc

        payload_type = PAYLOAD_TYPES[action]
        if not isinstance(payload, payload_type):
            try:
                payload = payload_type.model_validate(dict(payload or {}))
            except ValidationError as exc:
                raise InvalidInputError(f"Invalid {action.value} payload: {exc}") from exc

        return self.lifecycle.apply(session_id, action, payload)

    def replace_week(self, therapist_id: str, entries: List[Union[WeeklyScheduleEntry, Dict]]) -> None:
        try:
            parsed = [
                e if isinstance(e, WeeklyScheduleEntry) else WeeklyScheduleEntry.model_validate(e)
                for e in entries
            ]
        except ValidationError as exc:
            raise InvalidInputError(f"Invalid weekly schedule: {exc}") from exc
        self.schedules.replace_week(therapist_id, parsed)

    def sessions_on(self, therapist_id: str, date: DateLike) -> List[BookedSession]:
        """Every session the therapist has on the date, whatever its status."""
        query = BookingQuery(therapist_id, coerce_date(date)).with_statuses(SessionStatus)
        return self.sessions.list_bookings(query)
