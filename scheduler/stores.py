"""
Store contracts and in-memory implementations.

The engine only needs three collaborators:
1. Weekly Schedule Store (read-only, cacheable)
2. Booked Session Store (read existing bookings, insert, update)
3. Service Assignment store (session budget)

Queries are small typed filters instead of free-form where-clauses.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date as date_type
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Protocol, Tuple

from models import (
    BookedSession,
    DayOfWeek,
    ServiceAssignment,
    SessionStatus,
    WeeklyScheduleEntry,
)

from .errors import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)

ACTIVE_STATUSES: FrozenSet[SessionStatus] = frozenset({
    SessionStatus.SCHEDULED,
    SessionStatus.IN_PROGRESS,
})


# --- Typed Query Filters ---

@dataclass(frozen=True)
class ScheduleQuery:
    """Filter over weekly schedule entries."""
    therapist_id: str
    day_of_week: Optional[DayOfWeek] = None
    active_only: bool = True

    def on(self, day_of_week: DayOfWeek) -> "ScheduleQuery":
        return replace(self, day_of_week=day_of_week)

    def including_inactive(self) -> "ScheduleQuery":
        return replace(self, active_only=False)

    def matches(self, entry: WeeklyScheduleEntry) -> bool:
        if entry.therapist_id != self.therapist_id:
            return False
        if self.day_of_week is not None and entry.day_of_week != self.day_of_week:
            return False
        return entry.is_active or not self.active_only


@dataclass(frozen=True)
class BookingQuery:
    """Filter over booked sessions for one therapist on one date."""
    therapist_id: str
    on_date: date_type
    statuses: FrozenSet[SessionStatus] = ACTIVE_STATUSES
    exclude_session_id: Optional[str] = None

    def with_statuses(self, statuses: Iterable[SessionStatus]) -> "BookingQuery":
        return replace(self, statuses=frozenset(statuses))

    def excluding(self, session_id: Optional[str]) -> "BookingQuery":
        return replace(self, exclude_session_id=session_id)

    def matches(self, session: BookedSession) -> bool:
        return (
            session.therapist_id == self.therapist_id
            and session.scheduled_date == self.on_date
            and session.status in self.statuses
            and session.id != self.exclude_session_id
        )


# --- Contracts ---

class WeeklyScheduleStore(Protocol):
    def get_active_schedule(
        self, therapist_id: str, day_of_week: DayOfWeek
    ) -> Optional[WeeklyScheduleEntry]: ...

    def replace_week(self, therapist_id: str, entries: List[WeeklyScheduleEntry]) -> None: ...


class BookedSessionStore(Protocol):
    def list_bookings(self, query: BookingQuery) -> List[BookedSession]: ...

    def get(self, session_id: str) -> Optional[BookedSession]: ...

    def insert(self, session: BookedSession) -> BookedSession: ...

    def update(self, session_id: str, **fields) -> BookedSession: ...

    def booking_lock(self, therapist_id: str, on_date: date_type): ...


class ServiceAssignmentStore(Protocol):
    def get(self, assignment_id: str) -> Optional[ServiceAssignment]: ...

    def remaining_session_budget(self, assignment_id: str) -> int: ...

    def record_completion(self, assignment_id: str) -> ServiceAssignment: ...


# --- In-Memory Implementations ---

class InMemoryScheduleStore:
    """Weekly schedules indexed by (therapist, weekday)."""

    def __init__(self, entries: Optional[Iterable[WeeklyScheduleEntry]] = None):
        self._entries: Dict[Tuple[str, DayOfWeek], WeeklyScheduleEntry] = {}
        self._lock = threading.Lock()
        for entry in entries or []:
            self._entries[(entry.therapist_id, entry.day_of_week)] = entry

    def find(self, query: ScheduleQuery) -> List[WeeklyScheduleEntry]:
        return [e for e in self._entries.values() if query.matches(e)]

    def get_active_schedule(
        self, therapist_id: str, day_of_week: DayOfWeek
    ) -> Optional[WeeklyScheduleEntry]:
        matches = self.find(ScheduleQuery(therapist_id).on(day_of_week))
        return matches[0] if matches else None

    def replace_week(self, therapist_id: str, entries: List[WeeklyScheduleEntry]) -> None:
        """Swap the therapist's whole week in one step."""
        days = [e.day_of_week for e in entries]
        if len(days) != len(set(days)):
            raise InvalidInputError("Each weekday may appear at most once in a week")
        if any(e.therapist_id != therapist_id for e in entries):
            raise InvalidInputError(f"All entries must belong to therapist {therapist_id}")

        with self._lock:
            kept = {k: v for k, v in self._entries.items() if k[0] != therapist_id}
            kept.update({(therapist_id, e.day_of_week): e for e in entries})
            self._entries = kept
        logger.info(f"Replaced weekly schedule for {therapist_id} ({len(entries)} days)")


class CachedScheduleStore:
    """Read-through cache in front of any schedule store."""

    def __init__(self, inner: WeeklyScheduleStore):
        self.inner = inner
        self._cache: Dict[Tuple[str, DayOfWeek], Optional[WeeklyScheduleEntry]] = {}

    def get_active_schedule(
        self, therapist_id: str, day_of_week: DayOfWeek
    ) -> Optional[WeeklyScheduleEntry]:
        key = (therapist_id, day_of_week)
        if key not in self._cache:
            self._cache[key] = self.inner.get_active_schedule(therapist_id, day_of_week)
        return self._cache[key]

    def replace_week(self, therapist_id: str, entries: List[WeeklyScheduleEntry]) -> None:
        self.inner.replace_week(therapist_id, entries)
        self.invalidate(therapist_id)

    def invalidate(self, therapist_id: Optional[str] = None) -> None:
        if therapist_id is None:
            self._cache.clear()
            return
        for key in [k for k in self._cache if k[0] == therapist_id]:
            del self._cache[key]


class InMemorySessionStore:
    """
    Booked sessions keyed by id.
    booking_lock() serialises check-then-insert per (therapist, date).
    Reads snapshot the dict under the same lock writers use.
    """

    def __init__(self, sessions: Optional[Iterable[BookedSession]] = None):
        self._sessions: Dict[str, BookedSession] = {s.id: s for s in sessions or []}
        self._lock = threading.Lock()
        # (therapist, date) -> [lock, holders]; dropped once nobody holds or waits on it
        self._key_locks: Dict[Tuple[str, date_type], List] = {}
        self._registry_lock = threading.Lock()

    def list_bookings(self, query: BookingQuery) -> List[BookedSession]:
        with self._lock:
            matches = [s for s in self._sessions.values() if query.matches(s)]
        matches.sort(key=lambda s: s.start_minutes)
        return matches

    def all(self) -> List[BookedSession]:
        with self._lock:
            return list(self._sessions.values())

    def get(self, session_id: str) -> Optional[BookedSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def insert(self, session: BookedSession) -> BookedSession:
        with self._lock:
            if session.id in self._sessions:
                raise InvalidInputError(f"Session {session.id} already exists")
            self._sessions[session.id] = session
        return session

    def update(self, session_id: str, **fields) -> BookedSession:
        with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                raise NotFoundError(f"Session {session_id} not found")
            updated = current.model_copy(update=fields)
            self._sessions[session_id] = updated
        return updated

    @property
    def held_lock_count(self) -> int:
        """Number of (therapist, date) locks currently held or awaited."""
        with self._registry_lock:
            return len(self._key_locks)

    @contextmanager
    def booking_lock(self, therapist_id: str, on_date: date_type) -> Iterator[None]:
        key = (therapist_id, on_date)
        with self._registry_lock:
            entry = self._key_locks.setdefault(key, [threading.RLock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._registry_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._key_locks[key]


class InMemoryAssignmentStore:
    """Service assignments keyed by id."""

    def __init__(self, assignments: Optional[Iterable[ServiceAssignment]] = None):
        self._assignments: Dict[str, ServiceAssignment] = {a.id: a for a in assignments or []}
        self._lock = threading.Lock()

    def get(self, assignment_id: str) -> Optional[ServiceAssignment]:
        return self._assignments.get(assignment_id)

    def remaining_session_budget(self, assignment_id: str) -> int:
        assignment = self._assignments.get(assignment_id)
        if assignment is None:
            raise NotFoundError(f"Service assignment {assignment_id} not found")
        return assignment.remaining_sessions

    def record_completion(self, assignment_id: str) -> ServiceAssignment:
        with self._lock:
            assignment = self._assignments.get(assignment_id)
            if assignment is None:
                raise NotFoundError(f"Service assignment {assignment_id} not found")
            updated = assignment.model_copy(
                update={"completed_sessions": assignment.completed_sessions + 1}
            )
            self._assignments[assignment_id] = updated
        return updated
