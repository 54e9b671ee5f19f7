"""Daily session record models: one aggregate row per employee per day."""

from datetime import date, datetime, time, timedelta
from uuid import UUID

from pydantic import BaseModel, Field

from core.clock import ZERO, wrapped_daily_total
from core.models.ticket import StatusBucket, TicketLedger, TicketStatus, TransitionDelta


def clean_location(location: str | None) -> str | None:
    """Trimmed location, or None when blank."""
    if location is None:
        return None
    location = location.strip()
    return location or None


class SessionEvent(BaseModel):
    """A ledger transition as seen by the employee's daily record."""

    ticket_id: UUID
    status: TicketStatus
    last_status: TicketStatus | None = None
    occurred_at: datetime
    location: str | None = None
    delta: TransitionDelta = Field(default_factory=TransitionDelta)

    @classmethod
    def from_transition(
        cls,
        ledger: TicketLedger,
        delta: TransitionDelta,
        location: str | None = None,
    ) -> "SessionEvent":
        """The record's view of a committed ledger transition."""
        return cls(
            ticket_id=ledger.ticket_id,
            status=ledger.status,
            last_status=ledger.last_status,
            occurred_at=ledger.last_transition_at,
            location=location,
            delta=delta,
        )


class DailySessionRecord(BaseModel):
    """
    Per-employee, per-day aggregate as stored.

    `version` increases on every write and guards conditional updates.
    """

    id: UUID
    employee_id: UUID
    work_date: date
    first_time: time
    last_time: time
    first_location: str | None = None
    last_location: str | None = None
    locations: list[str] = Field(default_factory=list)
    current_status: TicketStatus | None = None
    last_status: TicketStatus | None = None
    spent_on_hold: timedelta = ZERO
    spent_assigned: timedelta = ZERO
    spent_in_progress: timedelta = ZERO
    morning_ot: timedelta = ZERO
    evening_ot: timedelta = ZERO
    closed: bool = False
    closed_at: datetime | None = None
    version: int = 1
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def total_daily_ot(self) -> timedelta:
        """Morning plus evening overtime, wrapped at 24h for display."""
        return wrapped_daily_total(self.morning_ot, self.evening_ot)

    @property
    def locations_summary(self) -> str:
        return ", ".join(self.locations)

    @property
    def unique_locations(self) -> list[str]:
        """Distinct locations in first-visit order."""
        return list(dict.fromkeys(self.locations))

    def spent_in(self, bucket: StatusBucket) -> timedelta:
        return getattr(self, bucket.field_name)


class OvertimeResult(BaseModel):
    """Overtime computed when a session is ended."""

    employee_id: UUID
    work_date: date
    morning_ot: timedelta
    evening_ot: timedelta
    total_daily_ot: timedelta
