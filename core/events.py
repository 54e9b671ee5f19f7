"""
Domain events for the work-session engine.

Immutable event objects that represent state changes. A service publishes
what happened, and handlers react without the publisher knowing who's
listening.

Event Categories:
- TicketEvent: Ticket status ledger lifecycle (status changed)
- SessionEvent: Daily session lifecycle (ended)

Events carry the full domain object so handlers don't need to re-fetch state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class WorkSessionEvent:
    """Base class for all domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# TICKET EVENTS
# =============================================================================


@dataclass(frozen=True)
class TicketEvent(WorkSessionEvent):
    """Events related to ticket status ledgers."""
    pass


@dataclass(frozen=True)
class TicketStatusChanged(TicketEvent):
    """
    A ledger transition committed.

    `ledger` is the updated TicketLedger, `delta` the TransitionDelta it
    produced, `location` where the employee reported the change from.
    """
    ledger: Any = None
    delta: Any = None
    location: str | None = None

    @classmethod
    def create(cls, ledger: Any, delta: Any, location: str | None = None) -> "TicketStatusChanged":
        return cls(ledger=ledger, delta=delta, location=location, occurred_at=ledger.last_transition_at)


# =============================================================================
# SESSION EVENTS
# =============================================================================


@dataclass(frozen=True)
class DailySessionEvent(WorkSessionEvent):
    """Events related to daily session records."""
    pass


@dataclass(frozen=True)
class SessionEnded(DailySessionEvent):
    """An employee ended their day; overtime is final."""
    record: Any = None

    @classmethod
    def create(cls, record: Any) -> "SessionEnded":
        return cls(record=record)
