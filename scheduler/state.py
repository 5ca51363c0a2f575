"""
Bulk Run State Management.

This module acts as the 'Memory' of one bulk scheduling run.
It tracks:
1. Sessions created so far (and therefore the budget still available).
2. Per-candidate failures with their suggestions.
3. Candidates skipped once the session budget ran out.
"""

from collections import defaultdict
from datetime import date as date_type
from typing import Any, Dict, List, Optional, Tuple

from models import (
    AvailabilityResult,
    BookedSession,
    BulkScheduleResult,
    CandidateSlot,
    SchedulingError,
)


class BulkRunState:
    """
    Mutable state of a single bulk run.
    Invariant: len(created) + len(errors) == evaluated_count.
    """

    def __init__(self, service_assignment_id: str):
        self.service_assignment_id = service_assignment_id

        self.created: List[BookedSession] = []
        self.errors: List[SchedulingError] = []
        self.skipped: List[CandidateSlot] = []
        self.budget_exhausted = False

        # Per-date counters for reporting
        self.created_per_date: Dict[date_type, int] = defaultdict(int)
        self.failures_by_reason: Dict[str, int] = defaultdict(int)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def evaluated_count(self) -> int:
        return len(self.created) + len(self.errors)

    def add_booking(self, session: BookedSession) -> None:
        """Commit a successful booking to the run."""
        self.created.append(session)
        self.created_per_date[session.scheduled_date] += 1

    def record_failure(
        self,
        candidate: CandidateSlot,
        result: AvailabilityResult,
        suggestions: List[CandidateSlot]
    ) -> SchedulingError:
        """Log a rejected candidate; the run carries on."""
        error = SchedulingError(
            date=candidate.date,
            time=candidate.time,
            duration_minutes=candidate.duration_minutes,
            reason=result.reason,
            message=result.message or result.reason.value,
            conflicting_session_id=result.conflicting_session_id,
            suggestions=suggestions
        )
        self.errors.append(error)
        self.failures_by_reason[result.reason.value] += 1
        return error

    def record_skipped(self, candidate: CandidateSlot) -> None:
        self.budget_exhausted = True
        self.skipped.append(candidate)

    # --- Reporting Methods ---

    def get_statistics(self) -> Dict[str, Any]:
        """Summary numbers for the final report."""
        evaluated = self.evaluated_count
        success_rate = (self.created_count / evaluated * 100) if evaluated else 0.0

        busiest_day: Optional[Tuple[date_type, int]] = None
        if self.created_per_date:
            busiest_day = max(self.created_per_date.items(), key=lambda x: x[1])

        return {
            "service_assignment_id": self.service_assignment_id,
            "evaluated": evaluated,
            "created": self.created_count,
            "conflicts": len(self.errors),
            "skipped": len(self.skipped),
            "budget_exhausted": self.budget_exhausted,
            "success_rate": f"{success_rate:.1f}%",
            "conflicts_by_reason": dict(self.failures_by_reason),
            "busiest_day": busiest_day,
        }

    def get_failure_report(self) -> List[Dict[str, Any]]:
        """Conflicts grouped by reason, most frequent first."""
        grouped: Dict[str, List[SchedulingError]] = defaultdict(list)
        for error in self.errors:
            grouped[error.reason.value].append(error)

        report = []
        for reason, errors in grouped.items():
            report.append({
                "reason": reason,
                "count": len(errors),
                "slots": [f"{e.date.isoformat()} {e.time}" for e in errors],
                "latest_message": errors[-1].message,
                "with_suggestions": sum(1 for e in errors if e.suggestions),
            })

        report.sort(key=lambda x: x["count"], reverse=True)
        return report

    def to_result(self) -> BulkScheduleResult:
        return BulkScheduleResult(
            service_assignment_id=self.service_assignment_id,
            created_sessions=list(self.created),
            errors=list(self.errors),
            skipped_candidates=list(self.skipped),
            evaluated_count=self.evaluated_count,
            budget_exhausted=self.budget_exhausted
        )
