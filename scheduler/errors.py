"""Domain-specific exception types for the scheduling engine."""


class EngineError(Exception):
    """Base engine error."""

    code = "ENGINE_ERROR"


class InvalidInputError(EngineError, ValueError):
    """Raised when a time, date, duration or recurrence input is malformed."""

    code = "VALIDATION_ERROR"


class NotFoundError(EngineError):
    """Raised when a session or service assignment does not exist."""

    code = "NOT_FOUND"


class AssignmentNotBookableError(EngineError):
    """Raised when the service assignment does not accept new bookings."""

    code = "ASSIGNMENT_NOT_BOOKABLE"


class BudgetExhaustedError(EngineError):
    """Raised when the assignment's session cap has been reached."""

    code = "BUDGET_EXHAUSTED"


class InvalidStateError(EngineError):
    """Raised when a lifecycle action is attempted from the wrong status."""

    code = "INVALID_STATE"


class SlotUnavailableError(EngineError):
    """Raised when a booking or reschedule targets a slot the checker rejected."""

    def __init__(self, result):
        self.result = result
        message = result.message or "Requested slot is not available"
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.result.reason.value if self.result.reason else "UNAVAILABLE"


class BookingRuleError(EngineError):
    """Raised when a single booking breaks the clinic's booking policy."""

    code = "RULE_VIOLATION"

    def __init__(self, violations):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))
