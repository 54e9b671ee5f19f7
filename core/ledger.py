"""
Ticket status state machine and time accumulation.

Pure functions over TicketLedger values. Persistence, audit and event
publication live in core.services.ledger_service.

Time between two transitions is charged to the status the ticket was in
during that interval. Only ON_HOLD, ASSIGNED and IN_PROGRESS accumulate;
PENDING, COMPLETED and CANCELLED time is not tracked.
"""

from datetime import datetime

from core.clock import ZERO, elapsed
from core.exceptions import ClockRegression, InvalidTransition, TerminalStateViolation
from core.models import TicketLedger, TicketStatus, TransitionDelta

_WORKING = {TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS, TicketStatus.ON_HOLD}

# Legal successors per status. Nothing moves back into PENDING; the three
# working states reach each other freely; terminal states have no successors.
ALLOWED_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.PENDING: frozenset(_WORKING | {TicketStatus.COMPLETED, TicketStatus.CANCELLED}),
    TicketStatus.ASSIGNED: frozenset({
        TicketStatus.IN_PROGRESS, TicketStatus.ON_HOLD,
        TicketStatus.COMPLETED, TicketStatus.CANCELLED,
    }),
    TicketStatus.IN_PROGRESS: frozenset({
        TicketStatus.ASSIGNED, TicketStatus.ON_HOLD,
        TicketStatus.COMPLETED, TicketStatus.CANCELLED,
    }),
    TicketStatus.ON_HOLD: frozenset({
        TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS,
        TicketStatus.COMPLETED, TicketStatus.CANCELLED,
    }),
    TicketStatus.COMPLETED: frozenset(),
    TicketStatus.CANCELLED: frozenset(),
}


def allowed_successors(status: TicketStatus) -> list[TicketStatus]:
    """Statuses a ticket may move to next, in declaration order."""
    allowed = ALLOWED_TRANSITIONS[status]
    return [s for s in TicketStatus if s in allowed]


def check_transition(current: TicketStatus, new_status: TicketStatus) -> None:
    """
    Validate a status change against the successor table.

    Raises:
        TerminalStateViolation: If current status is COMPLETED or CANCELLED
        InvalidTransition: If new status equals current or is not a legal successor
    """
    if current.is_terminal:
        raise TerminalStateViolation(
            f"Task is already {current.value} and can no longer change status"
        )

    if new_status == current:
        raise InvalidTransition(f"Task is already {current.value}")

    if new_status not in ALLOWED_TRANSITIONS[current]:
        allowed = ", ".join(s.value for s in allowed_successors(current))
        raise InvalidTransition(
            f"Cannot change task status from {current.value} to {new_status.value}. "
            f"Allowed: {allowed}"
        )


def apply_transition(
    ledger: TicketLedger,
    new_status: TicketStatus,
    occurred_at: datetime,
) -> tuple[TicketLedger, TransitionDelta]:
    """
    Move a ledger to a new status and charge the elapsed time.

    Args:
        ledger: Current ledger state
        new_status: Status to move to
        occurred_at: When the change happened (timezone-aware)

    Returns:
        (updated ledger, delta added to the previous status's bucket)

    Raises:
        TerminalStateViolation, InvalidTransition: See check_transition
        ClockRegression: If occurred_at precedes the last transition
    """
    check_transition(ledger.status, new_status)

    occurred_at = occurred_at.replace(microsecond=0)
    spent = elapsed(ledger.last_transition_at, occurred_at)
    if spent < ZERO:
        raise ClockRegression(
            f"Status change time {occurred_at.isoformat()} is earlier than the last "
            f"change at {ledger.last_transition_at.isoformat()}"
        )

    bucket = ledger.status.bucket
    updates = {
        "status": new_status,
        "last_status": ledger.status,
        "last_transition_at": occurred_at,
    }
    if bucket is not None:
        updates[bucket.field_name] = ledger.spent_in(bucket) + spent

    delta = TransitionDelta(bucket=bucket, duration=spent if bucket is not None else ZERO)
    return ledger.model_copy(update=updates), delta
