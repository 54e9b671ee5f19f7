"""Persistence for ticket status ledgers (table: ticket_ledgers)."""

from datetime import date
from typing import Protocol
from uuid import UUID

from clients.postgres_client import PostgresClient
from core.exceptions import StaleRecordError
from core.models import TicketLedger

_COLUMNS = (
    "ticket_id", "job_id", "employee_id", "work_date",
    "status", "last_status", "last_transition_at", "location",
    "spent_on_hold", "spent_assigned", "spent_in_progress",
    "created_at", "updated_at",
)


class LedgerStore(Protocol):
    def insert(self, ledger: TicketLedger) -> TicketLedger: ...
    def get(self, ticket_id: UUID) -> TicketLedger | None: ...
    def update(self, ledger: TicketLedger, expected: TicketLedger) -> TicketLedger: ...
    def list_for_employee(self, employee_id: UUID, start: date, end: date) -> list[TicketLedger]: ...


def _row_params(ledger: TicketLedger) -> dict:
    data = ledger.model_dump()
    data["status"] = ledger.status.value
    data["last_status"] = ledger.last_status.value if ledger.last_status else None
    return data


class PostgresLedgerRepository:
    """One row per ticket. Rows are never deleted."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def insert(self, ledger: TicketLedger) -> TicketLedger:
        """
        Insert a new ledger.

        Raises:
            ValueError: If a ledger already exists for the ticket
        """
        placeholders = ", ".join(f"%({c})s" for c in _COLUMNS)
        rows = self.postgres.execute_returning(
            f"""
            INSERT INTO ticket_ledgers ({', '.join(_COLUMNS)})
            VALUES ({placeholders})
            ON CONFLICT (ticket_id) DO NOTHING
            RETURNING *
            """,
            _row_params(ledger)
        )
        if not rows:
            raise ValueError(f"Ledger for ticket {ledger.ticket_id} already exists")
        return TicketLedger.model_validate(rows[0])

    def get(self, ticket_id: UUID) -> TicketLedger | None:
        row = self.postgres.execute_single(
            "SELECT * FROM ticket_ledgers WHERE ticket_id = %s",
            (ticket_id,)
        )
        if row is None:
            return None
        return TicketLedger.model_validate(row)

    def update(self, ledger: TicketLedger, expected: TicketLedger) -> TicketLedger:
        """
        Write status, timestamp and accumulators back, if the row still
        holds the status and transition time that `expected` was read with.

        Raises:
            StaleRecordError: If the ticket changed since `expected` was read
        """
        params = _row_params(ledger)
        params["expected_status"] = expected.status.value
        params["expected_transition_at"] = expected.last_transition_at
        rows = self.postgres.execute_returning(
            """
            UPDATE ticket_ledgers
            SET status = %(status)s,
                last_status = %(last_status)s,
                last_transition_at = %(last_transition_at)s,
                location = %(location)s,
                spent_on_hold = %(spent_on_hold)s,
                spent_assigned = %(spent_assigned)s,
                spent_in_progress = %(spent_in_progress)s,
                updated_at = %(updated_at)s
            WHERE ticket_id = %(ticket_id)s
              AND status = %(expected_status)s
              AND last_transition_at = %(expected_transition_at)s
            RETURNING *
            """,
            params
        )
        if not rows:
            raise StaleRecordError(
                f"Ticket {ledger.ticket_id} changed since it was read as "
                f"{expected.status.value} at {expected.last_transition_at.isoformat()}"
            )
        return TicketLedger.model_validate(rows[0])

    def list_for_employee(self, employee_id: UUID, start: date, end: date) -> list[TicketLedger]:
        """Ledgers with work_date in [start, end], oldest first."""
        rows = self.postgres.execute(
            """
            SELECT * FROM ticket_ledgers
            WHERE employee_id = %s AND work_date >= %s AND work_date <= %s
            ORDER BY work_date ASC, created_at ASC
            """,
            (employee_id, start, end)
        )
        return [TicketLedger.model_validate(row) for row in rows]
