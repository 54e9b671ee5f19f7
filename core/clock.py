"""
Clock model: durations, time-of-day arithmetic and work-day boundaries.

All values are kept at whole-second precision. Durations are plain
timedelta objects and may exceed 24 hours; only the daily-overtime display
helper wraps at a day boundary.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta

ZERO = timedelta(0)


def truncate(value: timedelta) -> timedelta:
    """Drop sub-second components from a duration."""
    return timedelta(seconds=int(value.total_seconds()))


def elapsed(start: datetime, end: datetime) -> timedelta:
    """Whole seconds from start to end. Negative if end precedes start."""
    return truncate(end.replace(microsecond=0) - start.replace(microsecond=0))


def seconds_of_day(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def time_of_day(value: time) -> time:
    """Normalize a time-of-day: no tzinfo, no sub-seconds."""
    return value.replace(microsecond=0, tzinfo=None)


def between(start: time, end: time) -> timedelta:
    """
    Non-negative duration from start to end within one day.

    Returns zero when end is not after start.
    """
    return timedelta(seconds=max(0, seconds_of_day(end) - seconds_of_day(start)))


def to_minutes(value: timedelta) -> int:
    """Whole minutes in a duration (seconds are floored away)."""
    return int(value.total_seconds()) // 60


def format_hms(value: timedelta) -> str:
    """Format as HH:MM:SS. Hours are not wrapped and may exceed 24."""
    total = int(value.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_hm(value: timedelta) -> str:
    """Format as HH:MM, dropping seconds. Hours may exceed 24."""
    return minutes_to_hm(to_minutes(value))


def minutes_to_hm(total_minutes: int) -> str:
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def minutes_to_hms(total_minutes: int) -> str:
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}:00"


def format_time(value: time | None) -> str:
    if value is None:
        return "00:00:00"
    return time_of_day(value).strftime("%H:%M:%S")


def wrapped_daily_total(morning: timedelta, evening: timedelta) -> timedelta:
    """
    Sum of morning and evening overtime as shown on daily report rows.

    Seconds are discarded from each part and the hour count wraps modulo 24,
    so the result always reads as a wall-clock value. Existing reports
    depend on this exact arithmetic.
    """
    total_minutes = to_minutes(morning) + to_minutes(evening)
    hours = (total_minutes // 60) % 24
    minutes = total_minutes % 60
    return timedelta(hours=hours, minutes=minutes)


@dataclass(frozen=True)
class WorkDay:
    """Configured start and end of the regular working day."""

    start: time
    end: time

    def __post_init__(self):
        if seconds_of_day(self.start) >= seconds_of_day(self.end):
            raise ValueError(
                f"Work day start {self.start} must be before end {self.end}"
            )

    def morning_overtime(self, first_time: time) -> timedelta:
        """Time worked before the work day starts."""
        return between(first_time, self.start)

    def evening_overtime(self, last_time: time) -> timedelta:
        """Time worked after the work day ends."""
        return between(self.end, last_time)
