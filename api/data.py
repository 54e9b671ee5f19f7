"""GET /api/data: unified read endpoint."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from api.views import ledger_data, record_data
from core.config import WorkSessionConfig
from core.exceptions import InvalidDateRange, LedgerNotFound, SessionClosed


VALID_TYPES = {"ticket", "session", "can_edit", "status_report", "overtime_report"}


def check_span(start: date, end: date, max_days: int) -> None:
    """
    Validate a report range, both ends inclusive.

    Raises:
        InvalidDateRange: If reversed or longer than max_days
    """
    if start > end:
        raise InvalidDateRange()
    if (end - start).days + 1 > max_days:
        raise InvalidDateRange(f"Date range cannot exceed {max_days} days")


def create_data_router(services: dict, config: WorkSessionConfig) -> APIRouter:
    router = APIRouter()

    ledger_svc = services["ledger"]
    session_mgr = services["session"]
    report_svc = services["report"]

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: UUID | None = Query(None),
        employee_id: UUID | None = Query(None),
        work_date: date | None = Query(None),
        start_date: date | None = Query(None),
        end_date: date | None = Query(None),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        today = session_mgr.clock.today()

        if type == "ticket":
            data = _handle_ticket(ledger_svc, id, employee_id, start_date, end_date)

        elif type == "session":
            employee_id = _require(employee_id, "employee_id", type)
            record = session_mgr.get_record(employee_id, work_date or today)
            data = record_data(record) if record else None

        elif type == "can_edit":
            employee_id = _require(employee_id, "employee_id", type)
            data = _handle_can_edit(session_mgr, employee_id, work_date or today)

        elif type == "status_report":
            employee_id = _require(employee_id, "employee_id", type)
            start = _require(start_date, "start_date", type)
            end = _require(end_date, "end_date", type)
            check_span(start, end, config.status_report_max_days)
            if end > today:
                raise InvalidDateRange("End date cannot be in the future")
            data = report_svc.status_time_report(employee_id, start, end).model_dump(mode="json")

        else:
            employee_id = _require(employee_id, "employee_id", type)
            start = _require(start_date, "start_date", type)
            end = _require(end_date, "end_date", type)
            check_span(start, end, config.overtime_report_max_days)
            data = report_svc.overtime_report(employee_id, start, end).model_dump(mode="json")

        return success_response(
            data, getattr(request.state, "request_id", None)
        ).model_dump(mode="json")

    return router


def _require(value, name: str, type: str):
    if value is None:
        raise ValueError(f"'{type}' type requires '{name}' parameter")
    return value


def _handle_ticket(ledger_svc, id, employee_id, start_date, end_date):
    if id:
        ledger = ledger_svc.get_by_id(id)
        if ledger is None:
            raise LedgerNotFound(f"Ticket {id} not found")
        return ledger_data(ledger)

    if employee_id and start_date and end_date:
        if start_date > end_date:
            raise InvalidDateRange()
        ledgers = ledger_svc.list_for_employee(employee_id, start_date, end_date)
        return [ledger_data(l) for l in ledgers]

    raise ValueError("'ticket' type requires 'id' or 'employee_id' with 'start_date' and 'end_date'")


def _handle_can_edit(session_mgr, employee_id, work_date):
    try:
        session_mgr.require_editable(employee_id, work_date)
    except SessionClosed as e:
        return {"can_edit": False, "reason": e.message}
    return {"can_edit": True, "reason": None}
