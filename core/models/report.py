"""Report projections. Built on read, never persisted.

Every duration is given twice: as a display string and as whole minutes.
Status-time reports use HH:MM, overtime reports use HH:MM:SS.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from core.models.ticket import TicketStatus


class StatusTimeRow(BaseModel):
    """Time spent per status on one ticket-day."""

    ticket_id: UUID
    job_id: UUID
    work_date: date
    location: str | None
    current_status: TicketStatus
    time_on_hold: str
    time_assigned: str
    time_in_progress: str
    total_time: str
    on_hold_minutes: int
    assigned_minutes: int
    in_progress_minutes: int
    total_minutes: int


class StatusTimeTotals(BaseModel):
    total_on_hold_time: str = "00:00"
    total_assigned_time: str = "00:00"
    total_in_progress_time: str = "00:00"
    total_combined_time: str = "00:00"
    total_on_hold_minutes: int = 0
    total_assigned_minutes: int = 0
    total_in_progress_minutes: int = 0
    total_combined_minutes: int = 0


class StatusTimeReport(BaseModel):
    employee_id: UUID
    start_date: date
    end_date: date
    total_tickets: int
    rows: list[StatusTimeRow] = Field(default_factory=list)
    totals: StatusTimeTotals = Field(default_factory=StatusTimeTotals)
    generated_at: datetime


class OvertimeRow(BaseModel):
    """One day's session record, formatted for the overtime report."""

    work_date: date
    first_time: str
    last_time: str
    first_location: str
    last_location: str
    all_locations: list[str]
    locations_summary: str
    morning_ot: str
    evening_ot: str
    daily_total_ot: str
    morning_ot_minutes: int
    evening_ot_minutes: int
    daily_total_ot_minutes: int
    on_hold_time: str
    assigned_time: str
    in_progress_time: str
    on_hold_minutes: int
    assigned_minutes: int
    in_progress_minutes: int
    current_status: TicketStatus | None
    last_status: TicketStatus | None
    closed: bool


class OvertimeTotals(BaseModel):
    total_morning_ot: str = "00:00:00"
    total_evening_ot: str = "00:00:00"
    total_ot: str = "00:00:00"
    total_on_hold_time: str = "00:00:00"
    total_assigned_time: str = "00:00:00"
    total_in_progress_time: str = "00:00:00"
    total_morning_ot_minutes: int = 0
    total_evening_ot_minutes: int = 0
    total_ot_minutes: int = 0
    total_on_hold_minutes: int = 0
    total_assigned_minutes: int = 0
    total_in_progress_minutes: int = 0


class OvertimeReport(BaseModel):
    employee_id: UUID
    start_date: date
    end_date: date
    rows: list[OvertimeRow] = Field(default_factory=list)
    totals: OvertimeTotals = Field(default_factory=OvertimeTotals)
    generated_at: datetime
