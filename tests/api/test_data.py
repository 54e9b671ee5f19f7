"""Tests for GET /api/data unified read endpoint."""

from uuid import uuid4

import pytest

from tests.fakes import EMPLOYEE_B_ID, EMPLOYEE_ID, JOB_ID, TODAY, at


@pytest.fixture
def worked_ticket(act, fake_now):
    """Ticket for EMPLOYEE_ID: ASSIGNED 07:30-09:00, then IN_PROGRESS until 10:00."""
    ticket = act(
        "ticket", "open",
        ticket_id=str(uuid4()), job_id=str(JOB_ID),
        employee_id=str(EMPLOYEE_ID), work_date=TODAY.isoformat(), location="Site A",
    ).json()["data"]

    for moment, status in ((at(7, 30), "ASSIGNED"), (at(9, 0), "IN_PROGRESS"), (at(10, 0), "ON_HOLD")):
        fake_now.set(moment)
        act("ticket", "change_status", ticket_id=ticket["ticket_id"], status=status, location="Site A")
    return ticket


def _get(client, **params):
    return client.get("/api/data", params=params)


class TestDataValidation:

    def test_missing_type_returns_400(self, client):
        response = client.get("/api/data")

        assert response.status_code == 400
        assert "'type'" in response.json()["error"]["message"]

    def test_unknown_type_returns_400(self, client):
        response = _get(client, type="payroll")

        assert response.status_code == 400
        assert "Unknown type" in response.json()["error"]["message"]

    def test_missing_employee_returns_400(self, client):
        response = _get(client, type="session")

        assert response.status_code == 400
        assert "employee_id" in response.json()["error"]["message"]

    def test_malformed_date_returns_422(self, client):
        response = _get(client, type="session", employee_id=str(EMPLOYEE_ID), work_date="15/03/2024")

        assert response.status_code == 422


class TestTicketData:

    def test_by_id(self, client, worked_ticket):
        data = _get(client, type="ticket", id=worked_ticket["ticket_id"]).json()["data"]

        assert data["status"] == "ON_HOLD"
        assert data["time_assigned"]["minutes"] == 90
        assert data["time_in_progress"]["minutes"] == 60

    def test_unknown_id_returns_404(self, client):
        response = _get(client, type="ticket", id=str(uuid4()))

        assert response.status_code == 404

    def test_by_employee_and_range(self, client, worked_ticket):
        data = _get(
            client, type="ticket", employee_id=str(EMPLOYEE_ID),
            start_date=TODAY.isoformat(), end_date=TODAY.isoformat(),
        ).json()["data"]

        assert [t["ticket_id"] for t in data] == [worked_ticket["ticket_id"]]

    def test_reversed_range_returns_400(self, client):
        response = _get(
            client, type="ticket", employee_id=str(EMPLOYEE_ID),
            start_date="2024-03-15", end_date="2024-03-01",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_DATE_RANGE"


class TestSessionData:

    def test_record_for_today(self, client, worked_ticket):
        data = _get(client, type="session", employee_id=str(EMPLOYEE_ID)).json()["data"]

        assert data["first_time"] == "07:30:00"
        assert data["last_time"] == "10:00:00"
        assert data["first_location"] == "Site A"
        assert data["current_status"] == "ON_HOLD"
        assert data["spent_in_progress"] == {"time": "01:00:00", "minutes": 60}
        assert data["closed"] is False

    def test_locations_trail_and_distinct_sites(self, client, act, fake_now, worked_ticket):
        for moment, status, location in ((at(10, 30), "IN_PROGRESS", "Site B"), (at(11, 0), "ON_HOLD", "Site A")):
            fake_now.set(moment)
            act("ticket", "change_status", ticket_id=worked_ticket["ticket_id"], status=status, location=location)

        data = _get(client, type="session", employee_id=str(EMPLOYEE_ID)).json()["data"]

        assert data["locations"] == ["Site A", "Site A", "Site A", "Site B", "Site A"]
        assert data["unique_locations"] == ["Site A", "Site B"]
        assert data["last_location"] == "Site A"

    def test_no_record_is_null(self, client):
        response = _get(client, type="session", employee_id=str(EMPLOYEE_B_ID))

        assert response.status_code == 200
        assert response.json()["data"] is None


class TestCanEdit:

    def test_open_day_is_editable(self, client, worked_ticket):
        data = _get(client, type="can_edit", employee_id=str(EMPLOYEE_ID)).json()["data"]

        assert data == {"can_edit": True, "reason": None}

    def test_closed_day_is_not_editable(self, client, act, worked_ticket):
        act("session", "end", employee_id=str(EMPLOYEE_ID), end_time="17:00:00")

        data = _get(client, type="can_edit", employee_id=str(EMPLOYEE_ID)).json()["data"]

        assert data["can_edit"] is False
        assert "Session already ended" in data["reason"]

    def test_past_day_is_not_editable(self, client):
        data = _get(
            client, type="can_edit", employee_id=str(EMPLOYEE_ID), work_date="2024-03-14"
        ).json()["data"]

        assert data["can_edit"] is False
        assert "today" in data["reason"]


class TestStatusReport:

    def test_report_rows_and_totals(self, client, worked_ticket):
        response = _get(
            client, type="status_report", employee_id=str(EMPLOYEE_ID),
            start_date=TODAY.isoformat(), end_date=TODAY.isoformat(),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_tickets"] == 1
        row = data["rows"][0]
        assert row["time_assigned"] == "01:30"
        assert row["time_in_progress"] == "01:00"
        assert row["total_time"] == "02:30"
        assert data["totals"]["total_combined_minutes"] == 150

    def test_span_over_limit_returns_400(self, client):
        response = _get(
            client, type="status_report", employee_id=str(EMPLOYEE_ID),
            start_date="2024-03-01", end_date="2024-03-15",
        )

        assert response.status_code == 400
        assert "14 days" in response.json()["error"]["message"]

    def test_future_end_returns_400(self, client):
        response = _get(
            client, type="status_report", employee_id=str(EMPLOYEE_ID),
            start_date="2024-03-15", end_date="2024-03-16",
        )

        assert response.status_code == 400
        assert "future" in response.json()["error"]["message"]


class TestOvertimeReport:

    def test_closed_day_in_report(self, client, act, worked_ticket):
        act("session", "end", employee_id=str(EMPLOYEE_ID), end_time="18:00:00", location="Site B")

        data = _get(
            client, type="overtime_report", employee_id=str(EMPLOYEE_ID),
            start_date="2024-03-01", end_date="2024-03-31",
        ).json()["data"]

        assert len(data["rows"]) == 1
        row = data["rows"][0]
        assert row["morning_ot"] == "00:30:00"
        assert row["evening_ot"] == "01:00:00"
        assert row["daily_total_ot"] == "01:30:00"
        assert row["last_location"] == "Site B"
        assert data["totals"]["total_ot_minutes"] == 90

    def test_empty_range(self, client):
        data = _get(
            client, type="overtime_report", employee_id=str(EMPLOYEE_ID),
            start_date="2024-03-01", end_date="2024-03-10",
        ).json()["data"]

        assert data["rows"] == []
        assert data["totals"]["total_ot"] == "00:00:00"

    def test_span_over_31_days_returns_400(self, client):
        response = _get(
            client, type="overtime_report", employee_id=str(EMPLOYEE_ID),
            start_date="2024-01-01", end_date="2024-03-15",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_DATE_RANGE"
