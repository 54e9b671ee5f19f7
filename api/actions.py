"""POST /api/actions: unified mutation endpoint."""

from datetime import date, datetime, time
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel

from api.base import success_response
from api.views import delta_data, ledger_data, overtime_data, record_data
from core.config import WorkSessionConfig
from core.models import LedgerCreate, TicketStatus


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict


class StatusChangeRequest(BaseModel):
    ticket_id: UUID
    status: TicketStatus
    occurred_at: datetime | None = None
    location: str | None = None


class EndSessionRequest(BaseModel):
    employee_id: UUID
    work_date: date | None = None
    end_time: time | None = None
    location: str | None = None


def check_location(location: str | None, max_length: int) -> None:
    if location is not None and len(location) > max_length:
        raise ValueError(f"Location cannot exceed {max_length} characters")


def create_actions_router(services: dict, config: WorkSessionConfig) -> APIRouter:
    router = APIRouter()

    handlers = {
        "ticket": TicketHandler(services["ledger"], config),
        "session": SessionHandler(services["session"], config),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(body.data)
        return success_response(
            result, getattr(request.state, "request_id", None)
        ).model_dump(mode="json")

    return router


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class TicketHandler:
    ALLOWED_ACTIONS = {"open", "change_status"}

    def __init__(self, ledger_service, config: WorkSessionConfig):
        self.ledger_service = ledger_service
        self.config = config

    def _handle_open(self, data: dict):
        request = LedgerCreate(**data)
        check_location(request.location, self.config.location_max_length)
        ledger = self.ledger_service.open(request)
        return ledger_data(ledger)

    def _handle_change_status(self, data: dict):
        """Move the ticket. The service gates on the day's session and updates it in the same hold."""
        request = StatusChangeRequest(**data)
        check_location(request.location, self.config.location_max_length)

        updated, delta = self.ledger_service.record_transition(
            request.ticket_id,
            request.status,
            occurred_at=request.occurred_at,
            location=request.location,
        )
        return {"ticket": ledger_data(updated), "added": delta_data(delta)}


class SessionHandler:
    ALLOWED_ACTIONS = {"end"}

    def __init__(self, session_manager, config: WorkSessionConfig):
        self.session_manager = session_manager
        self.config = config

    def _handle_end(self, data: dict):
        request = EndSessionRequest(**data)
        check_location(request.location, self.config.location_max_length)

        work_date = request.work_date or self.session_manager.clock.today()
        result = self.session_manager.end_session(
            request.employee_id,
            work_date,
            end_time=request.end_time,
            end_location=request.location,
        )
        record = self.session_manager.get_record(request.employee_id, work_date)
        return {"overtime": overtime_data(result), "session": record_data(record)}
