"""Tests for POST /api/actions unified mutation endpoint."""

import threading
from unittest.mock import Mock
from uuid import uuid4

import pytest

from api.app import build_services
from core.audit import AuditLogger
from core.locking import KeyedLock, session_lock_key
from tests.fakes import (
    EMPLOYEE_ID, JOB_ID, TODAY, InMemoryLedgerRepository, InMemorySessionRepository, at,
)


@pytest.fixture
def ticket(act):
    """Ticket opened for EMPLOYEE_ID on TODAY at 07:00."""
    response = act(
        "ticket", "open",
        ticket_id=str(uuid4()), job_id=str(JOB_ID),
        employee_id=str(EMPLOYEE_ID), work_date=TODAY.isoformat(),
    )
    assert response.status_code == 200
    return response.json()["data"]


def _change(act, ticket, status, **extra):
    return act("ticket", "change_status", ticket_id=ticket["ticket_id"], status=status, **extra)


# =============================================================================
# VALIDATION
# =============================================================================


class TestActionsValidation:

    def test_unknown_domain_returns_400(self, act):
        response = act("payroll", "create")

        assert response.status_code == 400
        assert "Unknown domain" in response.json()["error"]["message"]

    def test_action_not_allowed_returns_400(self, act):
        response = act("session", "reopen")

        assert response.status_code == 400
        assert "not allowed" in response.json()["error"]["message"]

    def test_missing_domain_returns_422(self, client):
        response = client.post("/api/actions", json={"action": "open", "data": {}})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_bad_payload_returns_400(self, act):
        response = act("ticket", "open", ticket_id="not-a-uuid")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_request_id_in_meta(self, client):
        response = client.post(
            "/api/actions",
            json={"domain": "nope", "action": "x", "data": {}},
            headers={"X-Request-ID": "req-42"},
        )

        assert response.json()["meta"]["request_id"] == "req-42"


# =============================================================================
# TICKETS
# =============================================================================


class TestTicketActions:

    def test_open_starts_pending(self, ticket):
        assert ticket["status"] == "PENDING"
        assert ticket["last_status"] is None
        assert ticket["time_assigned"] == {"time": "00:00:00", "minutes": 0}

    def test_open_twice_returns_409(self, act, ticket):
        response = act(
            "ticket", "open",
            ticket_id=ticket["ticket_id"], job_id=str(JOB_ID),
            employee_id=str(EMPLOYEE_ID), work_date=TODAY.isoformat(),
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ALREADY_EXISTS"

    def test_change_status_charges_previous_bucket(self, act, ticket, fake_now):
        fake_now.set(at(7, 30))
        first = _change(act, ticket, "ASSIGNED", location="Site A")
        fake_now.set(at(9, 0))
        second = _change(act, ticket, "IN_PROGRESS")

        assert first.status_code == 200
        assert first.json()["data"]["added"] == {"bucket": None, "time": "00:00:00", "minutes": 0}
        data = second.json()["data"]
        assert data["added"] == {"bucket": "ASSIGNED", "time": "01:30:00", "minutes": 90}
        assert data["ticket"]["status"] == "IN_PROGRESS"
        assert data["ticket"]["last_status"] == "ASSIGNED"
        assert data["ticket"]["location"] == "Site A"

    def test_change_status_feeds_daily_record(self, act, ticket, fake_now, services):
        fake_now.set(at(7, 30))
        _change(act, ticket, "ASSIGNED", location="Site A")
        fake_now.set(at(9, 0))
        _change(act, ticket, "IN_PROGRESS")

        record = services["session"].get_record(EMPLOYEE_ID, TODAY)
        assert record.first_time.isoformat() == "07:30:00"
        assert record.last_time.isoformat() == "09:00:00"
        assert record.spent_assigned.total_seconds() == 90 * 60
        assert record.current_status.value == "IN_PROGRESS"

    def test_unknown_ticket_returns_404(self, act):
        response = act("ticket", "change_status", ticket_id=str(uuid4()), status="ASSIGNED")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_invalid_transition_returns_409(self, act, ticket):
        response = _change(act, ticket, "PENDING")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"

    def test_terminal_ticket_returns_409(self, act, ticket, fake_now):
        _change(act, ticket, "CANCELLED")
        fake_now.advance(minutes=5)

        response = _change(act, ticket, "ASSIGNED")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "TERMINAL_STATE_VIOLATION"

    def test_location_too_long_returns_400(self, act, ticket):
        response = _change(act, ticket, "ASSIGNED", location="x" * 300)

        assert response.status_code == 400
        assert "Location" in response.json()["error"]["message"]

    def test_closed_day_rejects_change(self, act, ticket, fake_now):
        fake_now.set(at(7, 30))
        _change(act, ticket, "ASSIGNED")
        act("session", "end", employee_id=str(EMPLOYEE_ID), end_time="17:00:00")

        response = _change(act, ticket, "IN_PROGRESS")

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "SESSION_CLOSED"
        assert "Session already ended" in error["message"]

    def test_other_day_rejects_change(self, act, fake_now):
        opened = act(
            "ticket", "open",
            ticket_id=str(uuid4()), job_id=str(JOB_ID),
            employee_id=str(EMPLOYEE_ID), work_date="2024-03-14",
        ).json()["data"]

        response = _change(act, opened, "ASSIGNED")

        assert response.status_code == 409
        assert "only be changed for today" in response.json()["error"]["message"]


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessionActions:

    @pytest.fixture
    def worked_day(self, act, ticket, fake_now):
        fake_now.set(at(7, 30))
        _change(act, ticket, "ASSIGNED", location="Site A")
        fake_now.set(at(9, 0))
        _change(act, ticket, "IN_PROGRESS")

    def test_end_computes_overtime(self, act, worked_day):
        response = act(
            "session", "end",
            employee_id=str(EMPLOYEE_ID), end_time="18:15:00", location="Site B",
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["overtime"]["morning_ot"] == {"time": "00:30:00", "minutes": 30}
        assert data["overtime"]["evening_ot"] == {"time": "01:15:00", "minutes": 75}
        assert data["overtime"]["total_daily_ot"] == {"time": "01:45:00", "minutes": 105}
        assert data["session"]["closed"] is True
        assert data["session"]["last_time"] == "18:15:00"
        assert data["session"]["locations_summary"] == "Site A, Site B"

    def test_end_defaults_to_now(self, act, worked_day, fake_now):
        fake_now.set(at(17, 30))

        data = act("session", "end", employee_id=str(EMPLOYEE_ID)).json()["data"]

        assert data["overtime"]["evening_ot"]["minutes"] == 30

    def test_end_twice_returns_409(self, act, worked_day):
        act("session", "end", employee_id=str(EMPLOYEE_ID), end_time="17:00:00")

        response = act("session", "end", employee_id=str(EMPLOYEE_ID), end_time="17:05:00")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "SESSION_ALREADY_CLOSED"

    def test_end_without_session_returns_404(self, act):
        response = act("session", "end", employee_id=str(EMPLOYEE_ID))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NO_ACTIVE_SESSION"


class TestBusyDay:

    @pytest.fixture
    def locks(self):
        return KeyedLock(timeout_seconds=0.2)

    @pytest.fixture
    def services(self, config, clock, locks):
        return build_services(
            InMemoryLedgerRepository(),
            InMemorySessionRepository(),
            Mock(spec=AuditLogger),
            config,
            locks=locks,
            clock=clock,
        )

    def test_status_change_rejected_while_day_locked(self, act, client, ticket, locks, fake_now):
        fake_now.set(at(7, 30))
        _change(act, ticket, "ASSIGNED")
        fake_now.set(at(9, 0))
        held, release = threading.Event(), threading.Event()

        def hold_day():
            with locks.hold(session_lock_key(EMPLOYEE_ID, TODAY)):
                held.set()
                release.wait(5)

        holder = threading.Thread(target=hold_day)
        holder.start()
        held.wait(5)
        try:
            response = _change(act, ticket, "IN_PROGRESS")
        finally:
            release.set()
            holder.join()

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SESSION_BUSY"
        stored = client.get("/api/data", params={"type": "ticket", "id": ticket["ticket_id"]})
        assert stored.json()["data"]["status"] == "ASSIGNED"
