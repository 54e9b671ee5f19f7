"""Work-session engine configuration."""

import os
from datetime import time

from pydantic import BaseModel, Field, model_validator

from core.clock import WorkDay
from utils.timezone import get_zone

_ENV_PREFIX = "WORKSESSION_"


class WorkSessionConfig(BaseModel):
    """
    Work-session engine configuration.

    Work-day boundaries are wall-clock times in `timezone`. Durations are
    in their natural units (seconds for locks, days for report spans).
    """

    # Work day
    work_day_start: time = Field(
        default=time(8, 0),
        description="Start of the regular work day; earlier activity is morning overtime",
    )
    work_day_end: time = Field(
        default=time(17, 0),
        description="End of the regular work day; later activity is evening overtime",
    )
    timezone: str = Field(
        default="Asia/Colombo",
        description="IANA timezone that defines 'today' and work-day boundaries",
    )

    # Reporting
    overtime_report_max_days: int = Field(
        default=31,
        description="Maximum span of an overtime report",
        ge=1,
        le=366,
    )
    status_report_max_days: int = Field(
        default=14,
        description="Maximum span of a status-time report",
        ge=1,
        le=366,
    )

    # Concurrency
    lock_timeout_seconds: float = Field(
        default=5.0,
        description="How long to wait for the per-day record lock",
        gt=0,
        le=60,
    )
    lock_ttl_seconds: int = Field(
        default=30,
        description="Expiry of a distributed lock if its holder dies",
        ge=1,
        le=300,
    )
    max_write_attempts: int = Field(
        default=3,
        description="Attempts at a conditional write before giving up",
        ge=1,
        le=10,
    )

    # Input limits
    location_max_length: int = Field(
        default=255,
        description="Maximum length of a location string",
        ge=1,
    )

    @model_validator(mode="after")
    def _check_values(self):
        get_zone(self.timezone)
        WorkDay(start=self.work_day_start, end=self.work_day_end)
        return self

    @property
    def work_day(self) -> WorkDay:
        return WorkDay(start=self.work_day_start, end=self.work_day_end)

    @classmethod
    def from_env(cls) -> "WorkSessionConfig":
        """
        Build config from WORKSESSION_* environment variables.

        Unset variables fall back to field defaults, e.g.
        WORKSESSION_WORK_DAY_START=08:30 overrides work_day_start.
        """
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls(**values)
