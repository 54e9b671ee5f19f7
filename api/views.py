"""JSON shapes for domain objects returned by the API.

Durations go out as HH:MM:SS strings next to whole minutes rather than
pydantic's ISO 8601 duration encoding.
"""

from datetime import timedelta

from core.clock import format_hms, format_time, to_minutes
from core.models import DailySessionRecord, OvertimeResult, TicketLedger, TransitionDelta


def _duration(value: timedelta) -> dict:
    return {"time": format_hms(value), "minutes": to_minutes(value)}


def ledger_data(ledger: TicketLedger) -> dict:
    data = ledger.model_dump(
        mode="json", exclude={"spent_on_hold", "spent_assigned", "spent_in_progress"}
    )
    data["time_on_hold"] = _duration(ledger.spent_on_hold)
    data["time_assigned"] = _duration(ledger.spent_assigned)
    data["time_in_progress"] = _duration(ledger.spent_in_progress)
    return data


def delta_data(delta: TransitionDelta) -> dict:
    return {
        "bucket": delta.bucket.value if delta.bucket else None,
        **_duration(delta.duration),
    }


def record_data(record: DailySessionRecord) -> dict:
    durations = {"spent_on_hold", "spent_assigned", "spent_in_progress", "morning_ot", "evening_ot"}
    data = record.model_dump(mode="json", exclude=durations | {"first_time", "last_time"})
    data["first_time"] = format_time(record.first_time)
    data["last_time"] = format_time(record.last_time)
    for name in sorted(durations):
        data[name] = _duration(getattr(record, name))
    data["total_daily_ot"] = _duration(record.total_daily_ot)
    data["locations_summary"] = record.locations_summary
    data["unique_locations"] = record.unique_locations
    return data


def overtime_data(result: OvertimeResult) -> dict:
    return {
        "employee_id": str(result.employee_id),
        "work_date": result.work_date.isoformat(),
        "morning_ot": _duration(result.morning_ot),
        "evening_ot": _duration(result.evening_ot),
        "total_daily_ot": _duration(result.total_daily_ot),
    }
