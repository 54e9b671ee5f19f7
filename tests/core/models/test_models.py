"""Tests for core domain models - status helpers and derived values."""

from datetime import time, timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError

from tests.fakes import EMPLOYEE_ID, JOB_ID, TODAY, at


class TestTicketStatus:
    """Tests for TicketStatus helpers."""

    def test_terminal_statuses(self):
        from core.models import TicketStatus

        terminal = {s for s in TicketStatus if s.is_terminal}
        assert terminal == {TicketStatus.COMPLETED, TicketStatus.CANCELLED}

    def test_tracked_statuses_map_to_buckets(self):
        from core.models import StatusBucket, TicketStatus

        assert TicketStatus.ON_HOLD.bucket == StatusBucket.ON_HOLD
        assert TicketStatus.ASSIGNED.bucket == StatusBucket.ASSIGNED
        assert TicketStatus.IN_PROGRESS.bucket == StatusBucket.IN_PROGRESS

    def test_untracked_statuses_have_no_bucket(self):
        from core.models import TicketStatus

        for status in (TicketStatus.PENDING, TicketStatus.COMPLETED, TicketStatus.CANCELLED):
            assert status.bucket is None


class TestLedgerCreate:

    def test_location_limited_to_255(self):
        from core.models import LedgerCreate

        with pytest.raises(ValidationError):
            LedgerCreate(
                ticket_id=uuid4(), job_id=JOB_ID, employee_id=EMPLOYEE_ID,
                work_date=TODAY, location="x" * 256,
            )


class TestTicketLedger:

    def test_total_tracked_sums_buckets(self):
        from core.models import StatusBucket, TicketLedger

        ledger = TicketLedger(
            ticket_id=uuid4(), job_id=JOB_ID, employee_id=EMPLOYEE_ID, work_date=TODAY,
            last_transition_at=at(9), created_at=at(7), updated_at=at(9),
            spent_on_hold=timedelta(minutes=5), spent_assigned=timedelta(minutes=20),
            spent_in_progress=timedelta(hours=1),
        )

        assert ledger.total_tracked == timedelta(minutes=85)
        assert ledger.spent_in(StatusBucket.ASSIGNED) == timedelta(minutes=20)


class TestCleanLocation:

    @pytest.mark.parametrize("raw, expected", [
        (None, None),
        ("", None),
        ("   ", None),
        ("  Site A ", "Site A"),
    ])
    def test_clean_location(self, raw, expected):
        from core.models import clean_location

        assert clean_location(raw) == expected


class TestDailySessionRecord:

    @staticmethod
    def _record(**fields):
        from core.models import DailySessionRecord

        values = dict(
            id=uuid4(), employee_id=EMPLOYEE_ID, work_date=TODAY,
            first_time=time(7, 0), last_time=time(18, 0),
            created_at=at(7), updated_at=at(18),
        )
        values.update(fields)
        return DailySessionRecord(**values)

    def test_total_daily_ot_adds_parts(self):
        record = self._record(morning_ot=timedelta(hours=1), evening_ot=timedelta(minutes=45))

        assert record.total_daily_ot == timedelta(hours=1, minutes=45)

    def test_total_daily_ot_drops_seconds(self):
        record = self._record(
            morning_ot=timedelta(minutes=10, seconds=59),
            evening_ot=timedelta(minutes=5, seconds=59),
        )

        assert record.total_daily_ot == timedelta(minutes=15)

    def test_total_daily_ot_wraps_at_day(self):
        record = self._record(morning_ot=timedelta(hours=8), evening_ot=timedelta(hours=17))

        assert record.total_daily_ot == timedelta(hours=1)

    def test_locations_summary_keeps_repeats(self):
        record = self._record(locations=["Site A", "Site B", "Site A"])

        assert record.locations_summary == "Site A, Site B, Site A"
        assert record.unique_locations == ["Site A", "Site B"]

    def test_defaults(self):
        record = self._record()

        assert record.closed is False
        assert record.version == 1
        assert record.locations == []
        assert record.total_daily_ot == timedelta(0)
