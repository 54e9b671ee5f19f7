"""Core domain models."""

from core.models.ticket import (
    TicketStatus, StatusBucket, LedgerCreate, TransitionDelta, TicketLedger,
)
from core.models.session_record import DailySessionRecord, SessionEvent, OvertimeResult, clean_location
from core.models.report import (
    StatusTimeRow, StatusTimeTotals, StatusTimeReport,
    OvertimeRow, OvertimeTotals, OvertimeReport,
)

__all__ = [
    # Ticket ledger
    "TicketStatus", "StatusBucket", "LedgerCreate", "TransitionDelta", "TicketLedger",
    # Daily session
    "DailySessionRecord", "SessionEvent", "OvertimeResult", "clean_location",
    # Reports
    "StatusTimeRow", "StatusTimeTotals", "StatusTimeReport",
    "OvertimeRow", "OvertimeTotals", "OvertimeReport",
]
