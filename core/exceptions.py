"""
Typed exceptions for work-session failures.

Every error is recoverable and caller-visible. Each carries a machine
readable code and a message specific enough that staff can tell whether an
edit was rejected because the day is closed, because of an invalid status
jump, or because no session has started yet.

WorkSessionError subclasses ValueError so generic ValueError handling still
treats these as bad requests.
"""


class WorkSessionError(ValueError):
    """Base class for work-session errors."""

    code = "WORK_SESSION_ERROR"
    default_message = "Work session operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidTransition(WorkSessionError):
    """Status change is not allowed from the ticket's current status."""

    code = "INVALID_STATUS_TRANSITION"
    default_message = "This status change is not allowed"


class TerminalStateViolation(InvalidTransition):
    """Ticket is COMPLETED or CANCELLED and cannot change any further."""

    code = "TERMINAL_STATE_VIOLATION"
    default_message = "Task is already finished and can no longer change status"


class ClockRegression(WorkSessionError):
    """A timestamp earlier than the latest recorded one was supplied."""

    code = "CLOCK_REGRESSION"
    default_message = "Time is earlier than the last recorded time"

    def __init__(self, message: str | None = None, record=None):
        self.record = record
        super().__init__(message)


class NoActiveSession(WorkSessionError):
    """No session record exists for the employee on that date."""

    code = "NO_ACTIVE_SESSION"
    default_message = "No session has started for this day yet"


class SessionAlreadyClosed(WorkSessionError):
    """End session was requested for a day that is already closed."""

    code = "SESSION_ALREADY_CLOSED"
    default_message = "Session already ended for today"


class SessionClosed(WorkSessionError):
    """A ticket edit was attempted on a closed or non-current day."""

    code = "SESSION_CLOSED"
    default_message = "Session already ended for today. Task status can no longer be changed"


class InvalidDateRange(WorkSessionError):
    """Report date range is reversed or outside the allowed span."""

    code = "INVALID_DATE_RANGE"
    default_message = "Start date cannot be after end date"


class LedgerNotFound(WorkSessionError):
    """No status ledger exists for the ticket."""

    code = "NOT_FOUND"
    default_message = "Ticket not found"


class StaleRecordError(Exception):
    """
    Conditional write lost a race: the stored version moved on.

    Internal signal for the optimistic retry loop, never shown to users.
    """


class SessionBusy(WorkSessionError):
    """Could not obtain the per-day lock in time."""

    code = "SESSION_BUSY"
    default_message = "Another update for this day is in progress. Please retry"
