"""
Data models package for the Therapy Session Scheduler.

This package exports the three core pillars of the data architecture:
1. Demand (RecurrenceSpec, BulkScheduleRequest, CandidateSlot)
2. Supply (WeeklyScheduleEntry, DayOfWeek)
3. Output (BookedSession, ServiceAssignment, AvailabilityResult, BulkScheduleResult)
"""

from .resource import (
    DayOfWeek,
    WeeklyScheduleEntry
)

from .activity import (
    BulkScheduleRequest,
    CandidateSlot,
    Frequency,
    RecurrenceSpec,
    TimeSlotTemplate,
    MAX_SESSION_MINUTES,
    MIN_SESSION_MINUTES
)

from .schedule import (
    AssignmentStatus,
    BookedSession,
    RescheduleRecord,
    ServiceAssignment,
    SessionStatus
)

from .outcome import (
    AvailabilityResult,
    BulkScheduleResult,
    ConflictReason,
    SchedulingError
)

from .actions import (
    CancelPayload,
    CompletePayload,
    NoShowPayload,
    ReschedulePayload,
    SessionAction,
    StartPayload,
    PAYLOAD_TYPES
)

__all__ = [
    # --- Supply Models ---
    "DayOfWeek",
    "WeeklyScheduleEntry",

    # --- Demand Models ---
    "BulkScheduleRequest",
    "CandidateSlot",
    "Frequency",
    "RecurrenceSpec",
    "TimeSlotTemplate",
    "MAX_SESSION_MINUTES",
    "MIN_SESSION_MINUTES",

    # --- Output Models ---
    "AssignmentStatus",
    "BookedSession",
    "RescheduleRecord",
    "ServiceAssignment",
    "SessionStatus",
    "AvailabilityResult",
    "BulkScheduleResult",
    "ConflictReason",
    "SchedulingError",

    # --- Lifecycle Actions ---
    "CancelPayload",
    "CompletePayload",
    "NoShowPayload",
    "ReschedulePayload",
    "SessionAction",
    "StartPayload",
    "PAYLOAD_TYPES",
]
