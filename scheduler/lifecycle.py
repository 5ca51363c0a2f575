"""
Session Lifecycle State Machine.

SCHEDULED -> IN_PROGRESS -> COMPLETED is the happy path. A scheduled session
may also be cancelled or marked as a no-show. COMPLETED and CANCELLED are
terminal: nothing may touch a session once it reaches either.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, Optional

from models import (
    BookedSession,
    CancelPayload,
    CompletePayload,
    NoShowPayload,
    RescheduleRecord,
    ReschedulePayload,
    SessionAction,
    SessionStatus,
    StartPayload,
)

from .config import EngineConfig
from .constraints import AvailabilityChecker
from .errors import InvalidInputError, InvalidStateError, NotFoundError, SlotUnavailableError
from .scoring import SlotSuggester
from .stores import BookedSessionStore, ServiceAssignmentStore

logger = logging.getLogger(__name__)


def allowed_sources(config: EngineConfig) -> Dict[SessionAction, FrozenSet[SessionStatus]]:
    """Statuses each action may start from, under the given config."""
    complete_from = {SessionStatus.IN_PROGRESS}
    if config.allow_complete_from_scheduled:
        complete_from.add(SessionStatus.SCHEDULED)

    cancel_from = {SessionStatus.SCHEDULED}
    if config.allow_cancel_in_progress:
        cancel_from.add(SessionStatus.IN_PROGRESS)

    return {
        SessionAction.START: frozenset({SessionStatus.SCHEDULED}),
        SessionAction.COMPLETE: frozenset(complete_from),
        SessionAction.CANCEL: frozenset(cancel_from),
        SessionAction.NO_SHOW: frozenset({SessionStatus.SCHEDULED}),
        SessionAction.RESCHEDULE: frozenset({SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS}),
    }


def _append_note(existing: Optional[str], addition: Optional[str]) -> Optional[str]:
    if not addition:
        return existing
    return f"{existing or ''}\n{addition}".strip()


class SessionLifecycle:
    """
    Applies lifecycle actions to stored sessions.
    """

    def __init__(
        self,
        sessions: BookedSessionStore,
        assignments: ServiceAssignmentStore,
        checker: AvailabilityChecker,
        suggester: SlotSuggester,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.sessions = sessions
        self.assignments = assignments
        self.checker = checker
        self.suggester = suggester
        self.config = config or checker.config
        self.clock = clock
        self.transitions = allowed_sources(self.config)

    def apply(self, session_id: str, action: SessionAction, payload) -> BookedSession:
        handlers = {
            SessionAction.START: self.start,
            SessionAction.COMPLETE: self.complete,
            SessionAction.CANCEL: self.cancel,
            SessionAction.NO_SHOW: self.mark_no_show,
            SessionAction.RESCHEDULE: self.reschedule,
        }
        return handlers[action](session_id, payload)

    def start(self, session_id: str, payload: StartPayload) -> BookedSession:
        session = self._load_for(session_id, SessionAction.START)
        started_at = payload.started_at or self.clock()

        if self.config.enforce_start_window:
            lead = session.scheduled_start - started_at
            if lead > timedelta(minutes=self.config.early_start_minutes):
                raise InvalidStateError(
                    f"Cannot start session more than {self.config.early_start_minutes} "
                    f"minutes before {session.scheduled_start.isoformat()}"
                )
            if -lead > timedelta(minutes=self.config.late_start_minutes):
                raise InvalidStateError(
                    f"Cannot start session more than {self.config.late_start_minutes} "
                    f"minutes after {session.scheduled_start.isoformat()}"
                )

        logger.info(f"Session {session_id} started at {started_at.isoformat()}")
        return self.sessions.update(
            session_id,
            status=SessionStatus.IN_PROGRESS,
            started_at=started_at,
            notes=_append_note(session.notes, payload.notes)
        )

    def complete(self, session_id: str, payload: CompletePayload) -> BookedSession:
        session = self._load_for(session_id, SessionAction.COMPLETE)
        completed_at = payload.completed_at or self.clock()

        actual = payload.actual_duration_minutes
        if actual is None:
            if session.started_at is not None:
                actual = round((completed_at - session.started_at).total_seconds() / 60)
            else:
                actual = session.duration_minutes

        if not 1 <= actual <= self.config.max_actual_duration_minutes:
            raise InvalidInputError(
                f"Session duration must be between 1 and "
                f"{self.config.max_actual_duration_minutes} minutes, got {actual}"
            )

        updated = self.sessions.update(
            session_id,
            status=SessionStatus.COMPLETED,
            completed_at=completed_at,
            actual_duration_minutes=actual,
            notes=_append_note(session.notes, payload.notes)
        )
        self.assignments.record_completion(session.service_assignment_id)
        logger.info(f"Session {session_id} completed ({actual} min)")
        return updated

    def cancel(self, session_id: str, payload: CancelPayload) -> BookedSession:
        self._load_for(session_id, SessionAction.CANCEL)
        logger.info(f"Session {session_id} cancelled")
        return self.sessions.update(
            session_id,
            status=SessionStatus.CANCELLED,
            cancelled_at=self.clock(),
            cancellation_reason=payload.reason
        )

    def mark_no_show(self, session_id: str, payload: NoShowPayload) -> BookedSession:
        session = self._load_for(session_id, SessionAction.NO_SHOW)
        logger.info(f"Session {session_id} marked as no-show")
        return self.sessions.update(
            session_id,
            status=SessionStatus.NO_SHOW,
            notes=_append_note(session.notes, payload.notes)
        )

    def reschedule(self, session_id: str, payload: ReschedulePayload) -> BookedSession:
        """Move a live session, re-checking availability with itself excluded."""
        session = self._load_for(session_id, SessionAction.RESCHEDULE)

        new_date = payload.new_date or session.scheduled_date
        new_time = payload.new_time or session.scheduled_time
        new_duration = payload.new_duration_minutes or session.duration_minutes

        # The session never conflicts with itself, so its own slot is always a valid target
        with self.sessions.booking_lock(session.therapist_id, new_date):
            result = self.checker.check(
                session.therapist_id, new_date, new_time, new_duration,
                exclude_session_id=session.id
            )
            if not result.available:
                result.suggestions = self.suggester.suggest(
                    session.therapist_id, new_date, new_time, new_duration,
                    exclude_session_id=session.id
                )
                raise SlotUnavailableError(result)

            previous = session.rescheduled_from
            record = RescheduleRecord(
                original_date=previous.original_date if previous else session.scheduled_date,
                original_time=previous.original_time if previous else session.scheduled_time,
                original_duration_minutes=(
                    previous.original_duration_minutes if previous else session.duration_minutes
                ),
                rescheduled_at=self.clock(),
                reason=payload.reason,
                reschedule_count=previous.reschedule_count + 1 if previous else 1
            )
            note = f"Rescheduled: {payload.reason}" if payload.reason else None
            updated = self.sessions.update(
                session_id,
                scheduled_date=new_date,
                scheduled_time=new_time,
                duration_minutes=new_duration,
                rescheduled_from=record,
                notes=_append_note(session.notes, note)
            )

        logger.info(f"Session {session_id} moved to {new_date} {new_time} ({new_duration} min)")
        return updated

    def _load_for(self, session_id: str, action: SessionAction) -> BookedSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")

        if session.status.is_terminal:
            raise InvalidStateError(
                f"Session {session_id} is {session.status.value} and can no longer be modified"
            )
        if session.status not in self.transitions[action]:
            raise InvalidStateError(
                f"Cannot {action.value} session {session_id} with status {session.status.value}"
            )
        return session
