"""
Report aggregation over ticket ledgers and daily session records.

Both reports are read-only projections built on request. Rows are ordered by
date ascending and an empty range yields zeroed totals.
"""

import logging
from datetime import date
from uuid import UUID

from core.clock import format_hm, format_hms, format_time, minutes_to_hm, minutes_to_hms, to_minutes
from core.exceptions import InvalidDateRange
from core.models import (
    DailySessionRecord,
    OvertimeReport,
    OvertimeRow,
    OvertimeTotals,
    StatusTimeReport,
    StatusTimeRow,
    StatusTimeTotals,
    TicketLedger,
)
from core.repositories import LedgerStore, SessionStore
from utils.timezone import Clock

logger = logging.getLogger(__name__)

_NO_LOCATION = "N/A"


def _check_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidDateRange(
            f"Start date {start.isoformat()} is after end date {end.isoformat()}"
        )


def _status_row(ledger: TicketLedger) -> StatusTimeRow:
    on_hold = to_minutes(ledger.spent_on_hold)
    assigned = to_minutes(ledger.spent_assigned)
    in_progress = to_minutes(ledger.spent_in_progress)
    total = on_hold + assigned + in_progress

    return StatusTimeRow(
        ticket_id=ledger.ticket_id,
        job_id=ledger.job_id,
        work_date=ledger.work_date,
        location=ledger.location,
        current_status=ledger.status,
        time_on_hold=format_hm(ledger.spent_on_hold),
        time_assigned=format_hm(ledger.spent_assigned),
        time_in_progress=format_hm(ledger.spent_in_progress),
        total_time=minutes_to_hm(total),
        on_hold_minutes=on_hold,
        assigned_minutes=assigned,
        in_progress_minutes=in_progress,
        total_minutes=total,
    )


def _overtime_row(record: DailySessionRecord) -> OvertimeRow:
    return OvertimeRow(
        work_date=record.work_date,
        first_time=format_time(record.first_time),
        last_time=format_time(record.last_time),
        first_location=record.first_location or _NO_LOCATION,
        last_location=record.last_location or _NO_LOCATION,
        all_locations=list(record.locations),
        locations_summary=record.locations_summary or _NO_LOCATION,
        morning_ot=format_hms(record.morning_ot),
        evening_ot=format_hms(record.evening_ot),
        daily_total_ot=format_hms(record.total_daily_ot),
        morning_ot_minutes=to_minutes(record.morning_ot),
        evening_ot_minutes=to_minutes(record.evening_ot),
        daily_total_ot_minutes=to_minutes(record.total_daily_ot),
        on_hold_time=format_hms(record.spent_on_hold),
        assigned_time=format_hms(record.spent_assigned),
        in_progress_time=format_hms(record.spent_in_progress),
        on_hold_minutes=to_minutes(record.spent_on_hold),
        assigned_minutes=to_minutes(record.spent_assigned),
        in_progress_minutes=to_minutes(record.spent_in_progress),
        current_status=record.current_status,
        last_status=record.last_status,
        closed=record.closed,
    )


class ReportAggregator:
    """Builds status-time and overtime reports for one employee."""

    def __init__(self, ledgers: LedgerStore, sessions: SessionStore, clock: Clock):
        self.ledgers = ledgers
        self.sessions = sessions
        self.clock = clock

    def status_time_report(self, employee_id: UUID, start: date, end: date) -> StatusTimeReport:
        """
        Time spent in each status, one row per ticket-day.

        Raises:
            InvalidDateRange: If start is after end
        """
        _check_range(start, end)
        rows = [_status_row(l) for l in self.ledgers.list_for_employee(employee_id, start, end)]

        on_hold = sum(r.on_hold_minutes for r in rows)
        assigned = sum(r.assigned_minutes for r in rows)
        in_progress = sum(r.in_progress_minutes for r in rows)
        combined = on_hold + assigned + in_progress

        totals = StatusTimeTotals(
            total_on_hold_time=minutes_to_hm(on_hold),
            total_assigned_time=minutes_to_hm(assigned),
            total_in_progress_time=minutes_to_hm(in_progress),
            total_combined_time=minutes_to_hm(combined),
            total_on_hold_minutes=on_hold,
            total_assigned_minutes=assigned,
            total_in_progress_minutes=in_progress,
            total_combined_minutes=combined,
        )

        logger.debug(
            "Status-time report for %s %s..%s: %d tickets",
            employee_id, start, end, len(rows),
        )
        return StatusTimeReport(
            employee_id=employee_id,
            start_date=start,
            end_date=end,
            total_tickets=len(rows),
            rows=rows,
            totals=totals,
            generated_at=self.clock.now(),
        )

    def overtime_report(self, employee_id: UUID, start: date, end: date) -> OvertimeReport:
        """
        Overtime and per-status time, one row per day with a session record.

        Range totals sum the per-row minute values and are not wrapped.

        Raises:
            InvalidDateRange: If start is after end
        """
        _check_range(start, end)
        rows = [_overtime_row(r) for r in self.sessions.list_between(employee_id, start, end)]

        morning = sum(r.morning_ot_minutes for r in rows)
        evening = sum(r.evening_ot_minutes for r in rows)
        total = sum(r.daily_total_ot_minutes for r in rows)
        on_hold = sum(r.on_hold_minutes for r in rows)
        assigned = sum(r.assigned_minutes for r in rows)
        in_progress = sum(r.in_progress_minutes for r in rows)

        totals = OvertimeTotals(
            total_morning_ot=minutes_to_hms(morning),
            total_evening_ot=minutes_to_hms(evening),
            total_ot=minutes_to_hms(total),
            total_on_hold_time=minutes_to_hms(on_hold),
            total_assigned_time=minutes_to_hms(assigned),
            total_in_progress_time=minutes_to_hms(in_progress),
            total_morning_ot_minutes=morning,
            total_evening_ot_minutes=evening,
            total_ot_minutes=total,
            total_on_hold_minutes=on_hold,
            total_assigned_minutes=assigned,
            total_in_progress_minutes=in_progress,
        )

        logger.debug(
            "Overtime report for %s %s..%s: %d days",
            employee_id, start, end, len(rows),
        )
        return OvertimeReport(
            employee_id=employee_id,
            start_date=start,
            end_date=end,
            rows=rows,
            totals=totals,
            generated_at=self.clock.now(),
        )
