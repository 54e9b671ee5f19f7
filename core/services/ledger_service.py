"""
Ticket status ledger service.

Opens a ledger when a ticket is assigned to an employee for a date and
records every status transition against it.

With a session manager attached, a transition and its effect on the
employee's daily session record happen under one hold of that day's lock:
the edit gate is checked, the ledger is written, and the delta is ingested
into the record. If the ingest fails the ledger is put back and the error
reaches the caller. Committed transitions are then published as
TicketStatusChanged.
"""

import logging
from datetime import date, datetime
from uuid import UUID

from core.audit import AuditAction, AuditEntity, AuditLogger, compute_changes
from core.event_bus import EventBus
from core.events import TicketStatusChanged
from core.exceptions import ClockRegression, LedgerNotFound, SessionBusy, StaleRecordError
from core.ledger import apply_transition
from core.models import (
    LedgerCreate, SessionEvent, TicketLedger, TicketStatus, TransitionDelta, clean_location,
)
from core.repositories import LedgerStore
from core.services.session_service import SessionLifecycleManager
from utils.timezone import Clock, to_utc

logger = logging.getLogger(__name__)

_MAX_WRITE_ATTEMPTS = 3


class TicketLedgerService:
    """Service for ticket status ledgers."""

    def __init__(
        self,
        ledgers: LedgerStore,
        audit: AuditLogger,
        clock: Clock,
        event_bus: EventBus | None = None,
        sessions: SessionLifecycleManager | None = None,
    ):
        self.ledgers = ledgers
        self.audit = audit
        self.clock = clock
        self.event_bus = event_bus
        self.sessions = sessions

    def open(self, data: LedgerCreate, opened_at: datetime | None = None) -> TicketLedger:
        """
        Open a ledger for a newly assigned ticket.

        Args:
            data: Ticket, job, employee and work date
            opened_at: Creation instant (defaults to now)

        Returns:
            Ledger in PENDING status with zeroed accumulators

        Raises:
            ValueError: If the ticket already has a ledger
        """
        opened_at = to_utc(opened_at).replace(microsecond=0) if opened_at else self.clock.now()

        ledger = self.ledgers.insert(TicketLedger(
            ticket_id=data.ticket_id,
            job_id=data.job_id,
            employee_id=data.employee_id,
            work_date=data.work_date,
            status=TicketStatus.PENDING,
            last_transition_at=opened_at,
            location=clean_location(data.location),
            created_at=opened_at,
            updated_at=opened_at,
        ))

        self.audit.log_change(
            entity=AuditEntity.TICKET_LEDGER,
            entity_id=ledger.ticket_id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)},
            actor_id=ledger.employee_id,
        )

        logger.info(
            "Opened ledger for ticket %s (employee %s, %s)",
            ledger.ticket_id, ledger.employee_id, ledger.work_date,
        )
        return ledger

    def get_by_id(self, ticket_id: UUID) -> TicketLedger | None:
        return self.ledgers.get(ticket_id)

    def record_transition(
        self,
        ticket_id: UUID,
        new_status: TicketStatus,
        occurred_at: datetime | None = None,
        location: str | None = None,
    ) -> tuple[TicketLedger, TransitionDelta]:
        """
        Move a ticket to a new status and charge time to the previous one.

        Args:
            ticket_id: Ticket UUID
            new_status: Status to move to
            occurred_at: When the change happened (defaults to now)
            location: Where the employee reported the change from

        Returns:
            (updated ledger, delta added to the previous status's bucket)

        Raises:
            LedgerNotFound: If the ticket has no ledger
            SessionClosed: If the ticket's day is not today or has been ended
            SessionBusy: If the day or the ticket is being updated elsewhere
            TerminalStateViolation: If the ticket is COMPLETED or CANCELLED
            InvalidTransition: If the status change is not allowed
            ClockRegression: If occurred_at precedes the last transition
        """
        ledger = self.ledgers.get(ticket_id)
        if ledger is None:
            raise LedgerNotFound(f"Ticket {ticket_id} not found")

        occurred_at = to_utc(occurred_at) if occurred_at else self.clock.now()
        location = clean_location(location)

        if self.sessions is None:
            current, updated, delta = self._write(ticket_id, new_status, occurred_at, location)
        else:
            with self.sessions.hold_day(ledger.employee_id, ledger.work_date):
                self.sessions.require_editable(ledger.employee_id, ledger.work_date)
                current, updated, delta = self._write(ticket_id, new_status, occurred_at, location)
                self._ingest(current, updated, delta, location)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json"),
        )
        self.audit.log_change(
            entity=AuditEntity.TICKET_LEDGER,
            entity_id=ticket_id,
            action=AuditAction.UPDATE,
            changes=changes,
            actor_id=updated.employee_id,
        )

        logger.info(
            "Ticket %s moved %s -> %s, added %s to %s",
            ticket_id, current.status.value, new_status.value, delta.duration,
            delta.bucket.value if delta.bucket else "no bucket",
        )

        if self.event_bus:
            self.event_bus.publish(TicketStatusChanged.create(updated, delta, location))

        return updated, delta

    def _write(
        self,
        ticket_id: UUID,
        new_status: TicketStatus,
        occurred_at: datetime,
        location: str | None,
    ) -> tuple[TicketLedger, TicketLedger, TransitionDelta]:
        """
        Apply the transition to the stored ledger with a conditional write.

        A lost write re-reads the ledger, so a duplicate request is checked
        against the status the winner left behind.
        """
        for attempt in range(1, _MAX_WRITE_ATTEMPTS + 1):
            current = self.ledgers.get(ticket_id)
            if current is None:
                raise LedgerNotFound(f"Ticket {ticket_id} not found")

            moved, delta = apply_transition(current, new_status, occurred_at)
            updates = {"updated_at": self.clock.now()}
            if location is not None:
                updates["location"] = location

            try:
                updated = self.ledgers.update(moved.model_copy(update=updates), expected=current)
            except StaleRecordError as e:
                logger.warning(
                    "Write conflict on ticket %s (attempt %d/%d): %s",
                    ticket_id, attempt, _MAX_WRITE_ATTEMPTS, e,
                )
                continue
            return current, updated, delta

        raise SessionBusy("Another update for this task is in progress. Please retry")

    def _ingest(
        self,
        current: TicketLedger,
        updated: TicketLedger,
        delta: TransitionDelta,
        location: str | None,
    ) -> None:
        """Fold the transition into the day's record; undo the ledger write if that fails."""
        try:
            self.sessions.ingest(
                updated.employee_id,
                updated.work_date,
                SessionEvent.from_transition(updated, delta, location),
                lock_held=True,
            )
        except ClockRegression as e:
            logger.warning(
                "Out-of-order event for ticket %s (employee %s): %s",
                updated.ticket_id, updated.employee_id, e.message,
            )
        except Exception:
            self._restore(current, updated)
            raise

    def _restore(self, current: TicketLedger, updated: TicketLedger) -> None:
        try:
            self.ledgers.update(current, expected=updated)
        except Exception:
            logger.exception(
                "Could not restore ticket %s to %s after a failed session update",
                current.ticket_id, current.status.value,
            )
            return
        logger.warning(
            "Ticket %s restored to %s: session update failed",
            current.ticket_id, current.status.value,
        )

    def list_for_employee(self, employee_id: UUID, start: date, end: date) -> list[TicketLedger]:
        """Ledgers for an employee with work dates in [start, end], oldest first."""
        return self.ledgers.list_for_employee(employee_id, start, end)
