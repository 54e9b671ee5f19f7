"""Application assembly: services and the FastAPI app."""

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from core.audit import AuditLogger
from core.config import WorkSessionConfig
from core.event_bus import EventBus
from core.locking import RecordLock
from core.repositories import LedgerStore, SessionStore
from core.services.ledger_service import TicketLedgerService
from core.services.report_service import ReportAggregator
from core.services.session_service import SessionLifecycleManager
from utils.timezone import Clock


def build_services(
    ledgers: LedgerStore,
    sessions: SessionStore,
    audit: AuditLogger,
    config: WorkSessionConfig,
    locks: RecordLock | None = None,
    clock: Clock | None = None,
) -> dict:
    """
    Construct the services. Ledger transitions feed the daily session record.

    Returns:
        Dict with "ledger", "session", "report" and "event_bus" entries
    """
    clock = clock or Clock(config.timezone)
    event_bus = EventBus()

    session_manager = SessionLifecycleManager(
        sessions, audit, clock, config, locks=locks, event_bus=event_bus
    )
    ledger_service = TicketLedgerService(
        ledgers, audit, clock, event_bus=event_bus, sessions=session_manager
    )
    report = ReportAggregator(ledgers, sessions, clock)

    return {
        "ledger": ledger_service,
        "session": session_manager,
        "report": report,
        "event_bus": event_bus,
    }


def create_app(services: dict, config: WorkSessionConfig) -> FastAPI:
    """FastAPI app with request IDs, error handlers, and data/actions routes."""
    app = FastAPI(title="Work Session")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services, config), prefix="/api")
    app.include_router(create_actions_router(services, config), prefix="/api")

    return app
