"""Ticket (mini job card) status ledger models."""

from datetime import date, datetime, timedelta
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from core.clock import ZERO


class TicketStatus(str, Enum):
    """Ticket lifecycle status."""

    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (TicketStatus.COMPLETED, TicketStatus.CANCELLED)

    @property
    def bucket(self) -> "StatusBucket | None":
        """Accumulator that time spent in this status goes into, if tracked."""
        return _BUCKET_FOR_STATUS.get(self)


class StatusBucket(str, Enum):
    """Statuses whose elapsed time is accumulated and reported."""

    ON_HOLD = "ON_HOLD"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"

    @property
    def field_name(self) -> str:
        return _FIELD_FOR_BUCKET[self]


_BUCKET_FOR_STATUS = {
    TicketStatus.ON_HOLD: StatusBucket.ON_HOLD,
    TicketStatus.ASSIGNED: StatusBucket.ASSIGNED,
    TicketStatus.IN_PROGRESS: StatusBucket.IN_PROGRESS,
}

_FIELD_FOR_BUCKET = {
    StatusBucket.ON_HOLD: "spent_on_hold",
    StatusBucket.ASSIGNED: "spent_assigned",
    StatusBucket.IN_PROGRESS: "spent_in_progress",
}


class LedgerCreate(BaseModel):
    """Data required to open a ledger when a ticket is assigned to an employee."""

    ticket_id: UUID
    job_id: UUID
    employee_id: UUID
    work_date: date
    location: str | None = Field(None, max_length=255)


class TransitionDelta(BaseModel):
    """Time added to one bucket by a single status transition."""

    bucket: StatusBucket | None = None
    duration: timedelta = ZERO

    model_config = {"frozen": True}


class TicketLedger(BaseModel):
    """Status ledger for one ticket, as stored."""

    ticket_id: UUID
    job_id: UUID
    employee_id: UUID
    work_date: date
    status: TicketStatus = TicketStatus.PENDING
    last_status: TicketStatus | None = None
    last_transition_at: datetime
    location: str | None = None
    spent_on_hold: timedelta = ZERO
    spent_assigned: timedelta = ZERO
    spent_in_progress: timedelta = ZERO
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def total_tracked(self) -> timedelta:
        """Sum of all three accumulators."""
        return self.spent_on_hold + self.spent_assigned + self.spent_in_progress

    def spent_in(self, bucket: StatusBucket) -> timedelta:
        return getattr(self, bucket.field_name)
