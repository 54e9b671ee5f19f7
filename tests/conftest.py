"""Shared test fixtures for the work-session test suite."""

import pytest

from pathlib import Path
from unittest.mock import Mock
from uuid import uuid4

from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from core.audit import AuditLogger
from core.config import WorkSessionConfig
from core.event_bus import EventBus
from core.locking import KeyedLock
from core.models import LedgerCreate
from core.services.ledger_service import TicketLedgerService
from core.services.report_service import ReportAggregator
from core.services.session_service import SessionLifecycleManager
from tests.fakes import (
    EMPLOYEE_ID, JOB_ID, TODAY, TZ_NAME,
    FakeNow, InMemoryLedgerRepository, InMemorySessionRepository, at,
)
from utils.timezone import Clock


# =============================================================================
# CLOCK & CONFIG
# =============================================================================


@pytest.fixture
def fake_now():
    """Current instant, starts at 07:00 local on TODAY. Tests move it as needed."""
    return FakeNow(at(7, 0))


@pytest.fixture
def clock(fake_now):
    return Clock(TZ_NAME, now_fn=fake_now)


@pytest.fixture
def config():
    return WorkSessionConfig(timezone=TZ_NAME)


# =============================================================================
# STORES & COLLABORATORS
# =============================================================================


@pytest.fixture
def ledger_repo():
    return InMemoryLedgerRepository()


@pytest.fixture
def session_repo():
    return InMemorySessionRepository()


@pytest.fixture
def audit():
    return Mock(spec=AuditLogger)


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def locks(config):
    return KeyedLock(timeout_seconds=config.lock_timeout_seconds)


# =============================================================================
# SERVICES
# =============================================================================


@pytest.fixture
def session_manager(session_repo, audit, clock, config, locks, event_bus):
    return SessionLifecycleManager(
        session_repo, audit, clock, config, locks=locks, event_bus=event_bus
    )


@pytest.fixture
def ledger_service(ledger_repo, audit, clock, event_bus, session_manager):
    """Ledger service whose transitions flow into the daily session record."""
    return TicketLedgerService(ledger_repo, audit, clock, event_bus, sessions=session_manager)


@pytest.fixture
def report_service(ledger_repo, session_repo, clock):
    return ReportAggregator(ledger_repo, session_repo, clock)


@pytest.fixture
def open_ticket(ledger_service):
    """Open a ledger for EMPLOYEE_ID on TODAY; returns a factory."""

    def _open(employee_id=EMPLOYEE_ID, work_date=TODAY, opened_at=None, location=None):
        return ledger_service.open(
            LedgerCreate(
                ticket_id=uuid4(),
                job_id=JOB_ID,
                employee_id=employee_id,
                work_date=work_date,
                location=location,
            ),
            opened_at=opened_at,
        )

    return _open
