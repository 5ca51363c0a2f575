"""
The Bulk Session Scheduling Engine.

This module implements the greedy orchestrator behind bulk scheduling:
1. Expand the recurrence into candidate slots (lazily, in order).
2. Check each candidate against the therapist's availability.
3. Commit successes immediately so later candidates on the same day see them.
4. Collect failures with suggestions; a conflict never aborts the run.
5. Stop once the service assignment's session budget is spent.
"""

import logging
from typing import Optional

from models import AssignmentStatus, BookedSession, BulkScheduleRequest, ServiceAssignment, SessionStatus

from .config import EngineConfig
from .constraints import AvailabilityChecker
from .errors import AssignmentNotBookableError, BudgetExhaustedError, NotFoundError
from .recurrence import expand_recurrence
from .scoring import SlotSuggester
from .state import BulkRunState
from .stores import BookedSessionStore, ServiceAssignmentStore

logger = logging.getLogger(__name__)


class BulkScheduler:
    """
    Main bulk scheduling engine.
    Ingests a recurrence request, outputs created sessions plus conflicts.
    """

    def __init__(
        self,
        checker: AvailabilityChecker,
        suggester: SlotSuggester,
        sessions: BookedSessionStore,
        assignments: ServiceAssignmentStore,
        config: Optional[EngineConfig] = None
    ):
        self.checker = checker
        self.suggester = suggester
        self.sessions = sessions
        self.assignments = assignments
        self.config = config or checker.config

    def run(self, request: BulkScheduleRequest) -> BulkRunState:
        """
        Execute the scheduling pipeline for one request.
        Precondition failures raise before any candidate is processed.
        """
        assignment = self._load_bookable_assignment(request.service_assignment_id)
        therapist_id = assignment.therapist_id
        state = BulkRunState(assignment.id)

        logger.info(
            f"Starting bulk run for {assignment.id} ({request.frequency.value}, "
            f"{request.start_date} -> {request.end_date})"
        )

        candidates = expand_recurrence(request, self.config)
        for candidate in candidates:
            # 1. Budget: total - completed - created this run
            if self._remaining_budget(assignment.id, state) <= 0:
                state.record_skipped(candidate)
                for rest in candidates:
                    state.record_skipped(rest)
                logger.warning(
                    f"Session budget for {assignment.id} exhausted; "
                    f"{len(state.skipped)} candidates skipped"
                )
                break

            # 2. Check and commit under the therapist/day lock
            with self.sessions.booking_lock(therapist_id, candidate.date):
                result = self.checker.check(
                    therapist_id, candidate.date, candidate.time, candidate.duration_minutes
                )
                if result.available:
                    session = self.sessions.insert(BookedSession(
                        therapist_id=therapist_id,
                        patient_id=assignment.patient_id,
                        service_assignment_id=assignment.id,
                        scheduled_date=candidate.date,
                        scheduled_time=candidate.time,
                        duration_minutes=candidate.duration_minutes,
                        status=SessionStatus.SCHEDULED,
                        notes=request.notes or f"Bulk scheduled session for assignment {assignment.id}"
                    ))
                    state.add_booking(session)
                    continue

            # 3. Conflict: record with suggestions and keep going
            suggestions = self.suggester.suggest(
                therapist_id, candidate.date, candidate.time, candidate.duration_minutes
            )
            state.record_failure(candidate, result, suggestions)
            logger.debug(f"Rejected {candidate.date} {candidate.time}: {result.reason.value}")

        logger.info(
            f"Bulk run for {assignment.id} finished: {state.created_count} created, "
            f"{len(state.errors)} conflicts, {len(state.skipped)} skipped"
        )
        return state

    def _load_bookable_assignment(self, assignment_id: str) -> ServiceAssignment:
        assignment = self.assignments.get(assignment_id)
        if assignment is None:
            raise NotFoundError(f"Service assignment {assignment_id} not found")
        if assignment.status != AssignmentStatus.ACTIVE:
            raise AssignmentNotBookableError(
                f"Service assignment {assignment_id} is {assignment.status.value}"
            )
        if self.assignments.remaining_session_budget(assignment_id) <= 0:
            raise BudgetExhaustedError(
                f"Service assignment {assignment_id} has no sessions left to book"
            )
        return assignment

    def _remaining_budget(self, assignment_id: str, state: BulkRunState) -> int:
        return self.assignments.remaining_session_budget(assignment_id) - state.created_count
