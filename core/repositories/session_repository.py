"""
Persistence for daily session records.

Tables:
- daily_session_records: one row per (employee_id, work_date), with a
  `version` column guarding every update
- daily_session_locations: location trail, (record_id, position) ordered
"""

from datetime import date
from typing import Any, Protocol
from uuid import UUID

from clients.postgres_client import PostgresClient, Transaction
from core.exceptions import StaleRecordError
from core.models import DailySessionRecord

_COLUMNS = (
    "id", "employee_id", "work_date", "first_time", "last_time",
    "first_location", "last_location", "current_status", "last_status",
    "spent_on_hold", "spent_assigned", "spent_in_progress",
    "morning_ot", "evening_ot", "closed", "closed_at", "version",
    "created_at", "updated_at",
)

_UPDATABLE = tuple(
    c for c in _COLUMNS if c not in {"id", "employee_id", "work_date", "created_at", "version"}
)


class SessionStore(Protocol):
    def get(self, employee_id: UUID, work_date: date) -> DailySessionRecord | None: ...
    def insert(self, record: DailySessionRecord) -> DailySessionRecord: ...
    def update(self, record: DailySessionRecord, expected_version: int) -> DailySessionRecord: ...
    def list_between(self, employee_id: UUID, start: date, end: date) -> list[DailySessionRecord]: ...


def _row_params(record: DailySessionRecord) -> dict[str, Any]:
    data = record.model_dump(exclude={"locations"})
    for key in ("current_status", "last_status"):
        data[key] = data[key].value if data[key] is not None else None
    return data


def _insert_locations(tx: Transaction, record_id: UUID, locations: list[str], start: int) -> None:
    for position, location in enumerate(locations[start:], start=start):
        tx.execute(
            """
            INSERT INTO daily_session_locations (record_id, position, location)
            VALUES (%s, %s, %s)
            """,
            (record_id, position, location)
        )


class PostgresSessionRepository:
    """Daily session records with their location trails."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def _with_locations(self, rows: list[dict]) -> list[DailySessionRecord]:
        if not rows:
            return []

        location_rows = self.postgres.execute(
            """
            SELECT record_id, location FROM daily_session_locations
            WHERE record_id = ANY(%s::uuid[])
            ORDER BY record_id, position ASC
            """,
            ([row["id"] for row in rows],)
        )
        trails: dict[str, list[str]] = {}
        for loc in location_rows:
            trails.setdefault(str(loc["record_id"]), []).append(loc["location"])

        return [
            DailySessionRecord.model_validate({**row, "locations": trails.get(str(row["id"]), [])})
            for row in rows
        ]

    def get(self, employee_id: UUID, work_date: date) -> DailySessionRecord | None:
        rows = self.postgres.execute(
            "SELECT * FROM daily_session_records WHERE employee_id = %s AND work_date = %s",
            (employee_id, work_date)
        )
        records = self._with_locations(rows)
        return records[0] if records else None

    def insert(self, record: DailySessionRecord) -> DailySessionRecord:
        """
        Insert the first record of the day.

        Raises:
            StaleRecordError: If another writer created the day's record first
        """
        placeholders = ", ".join(f"%({c})s" for c in _COLUMNS)
        with self.postgres.transaction() as tx:
            row = tx.execute_single(
                f"""
                INSERT INTO daily_session_records ({', '.join(_COLUMNS)})
                VALUES ({placeholders})
                ON CONFLICT (employee_id, work_date) DO NOTHING
                RETURNING *
                """,
                _row_params(record)
            )
            if row is None:
                raise StaleRecordError(
                    f"Session record for {record.employee_id} on {record.work_date} already exists"
                )
            _insert_locations(tx, record.id, record.locations, 0)

        return DailySessionRecord.model_validate({**row, "locations": record.locations})

    def update(self, record: DailySessionRecord, expected_version: int) -> DailySessionRecord:
        """
        Write the record if the stored version still equals expected_version.

        Locations are append-only: rows past the stored trail length are added.

        Raises:
            StaleRecordError: If the stored version moved on
        """
        params = _row_params(record)
        params["expected_version"] = expected_version
        params["new_version"] = expected_version + 1
        assignments = ", ".join(f"{c} = %({c})s" for c in _UPDATABLE)

        with self.postgres.transaction() as tx:
            row = tx.execute_single(
                f"""
                UPDATE daily_session_records
                SET {assignments}, version = %(new_version)s
                WHERE id = %(id)s AND version = %(expected_version)s
                RETURNING *
                """,
                params
            )
            if row is None:
                raise StaleRecordError(
                    f"Session record {record.id} changed since version {expected_version}"
                )

            stored = tx.execute_single(
                "SELECT count(*) AS n FROM daily_session_locations WHERE record_id = %s",
                (record.id,)
            )
            _insert_locations(tx, record.id, record.locations, stored["n"])

        return DailySessionRecord.model_validate({**row, "locations": record.locations})

    def list_between(self, employee_id: UUID, start: date, end: date) -> list[DailySessionRecord]:
        """Records with work_date in [start, end], by date ascending."""
        rows = self.postgres.execute(
            """
            SELECT * FROM daily_session_records
            WHERE employee_id = %s AND work_date >= %s AND work_date <= %s
            ORDER BY work_date ASC
            """,
            (employee_id, start, end)
        )
        return self._with_locations(rows)
