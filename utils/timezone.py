"""UTC-everywhere time handling. Eliminates timezone bugs at the source."""

from datetime import date, datetime, time, timezone
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def now_utc() -> datetime:
    """
    Current time in UTC, truncated to whole seconds.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA timezone name, raising ValueError if unknown."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")


def to_local(dt: datetime, tz_name: str) -> datetime:
    """
    Convert UTC datetime to local timezone.

    Used at display boundaries and wherever a business rule is defined in
    wall-clock terms (work-day boundaries, "today").

    Args:
        dt: UTC datetime
        tz_name: IANA timezone name (e.g., "Asia/Colombo")

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )

    return dt.astimezone(get_zone(tz_name))


class Clock:
    """
    Source of "now" and "today" for a business timezone.

    Services receive a Clock instead of reading system time so that
    tests can pin the current instant.

    Usage:
        clock = Clock("Asia/Colombo")
        clock.today()                     # local calendar date

        fixed = Clock("Asia/Colombo", now_fn=lambda: some_utc_datetime)
    """

    def __init__(self, tz_name: str, now_fn: Callable[[], datetime] = now_utc):
        self.tz_name = tz_name
        self._zone = get_zone(tz_name)
        self._now_fn = now_fn

    def now(self) -> datetime:
        """Current instant in UTC, second precision."""
        return to_utc(self._now_fn()).replace(microsecond=0)

    def today(self) -> date:
        """Current calendar date in the business timezone."""
        return self.now().astimezone(self._zone).date()

    def local_time(self, dt: datetime) -> time:
        """Wall-clock time-of-day of an instant, sub-seconds dropped."""
        return to_local(dt, self.tz_name).time().replace(microsecond=0, tzinfo=None)
