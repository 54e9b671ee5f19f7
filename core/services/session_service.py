"""
Session lifecycle manager for daily session records.

Owns the per-employee, per-day record: creates it on the day's first status
event, folds every later ledger transition into it, gates ticket edits, and
closes it when the employee ends their session.

Every read-modify-write of a record runs under that record's lock, and the
write itself is conditional on the version read. A lost race is retried a
bounded number of times.
"""

import logging
from datetime import date, time
from typing import Callable, ContextManager, TypeVar
from uuid import UUID, uuid4

from core.audit import AuditAction, AuditEntity, AuditLogger, compute_changes
from core.clock import format_time, time_of_day
from core.config import WorkSessionConfig
from core.event_bus import EventBus
from core.events import SessionEnded
from core.exceptions import (
    ClockRegression,
    NoActiveSession,
    SessionAlreadyClosed,
    SessionBusy,
    SessionClosed,
    StaleRecordError,
)
from core.locking import KeyedLock, RecordLock, session_lock_key
from core.models import DailySessionRecord, OvertimeResult, SessionEvent, clean_location
from core.repositories import SessionStore
from utils.timezone import Clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _append_location(record_updates: dict, locations: list[str], first: str | None, location: str | None) -> None:
    if location is None:
        return
    record_updates["locations"] = [*locations, location]
    record_updates["last_location"] = location
    if first is None:
        record_updates["first_location"] = location


class SessionLifecycleManager:
    """Creates, updates, gates and closes daily session records."""

    def __init__(
        self,
        sessions: SessionStore,
        audit: AuditLogger,
        clock: Clock,
        config: WorkSessionConfig,
        locks: RecordLock | None = None,
        event_bus: EventBus | None = None,
    ):
        self.sessions = sessions
        self.audit = audit
        self.clock = clock
        self.config = config
        self.locks = locks or KeyedLock(timeout_seconds=config.lock_timeout_seconds)
        self.event_bus = event_bus

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_record(self, employee_id: UUID, work_date: date) -> DailySessionRecord | None:
        return self.sessions.get(employee_id, work_date)

    def can_edit(self, employee_id: UUID, work_date: date) -> bool:
        """
        Whether ticket statuses for this employee and day may still change.

        False for any day other than today in the configured timezone and
        for a day whose session has been ended. A day with no record yet is
        editable, since the first status change is what opens it.
        """
        try:
            self.require_editable(employee_id, work_date)
        except SessionClosed:
            return False
        return True

    def require_editable(self, employee_id: UUID, work_date: date) -> None:
        """
        Raise unless ticket statuses for this day may still change.

        Raises:
            SessionClosed: With a message naming why the edit is refused
        """
        today = self.clock.today()
        if work_date != today:
            raise SessionClosed(
                f"Task status can only be changed for today ({today.isoformat()}), "
                f"not {work_date.isoformat()}"
            )

        record = self.sessions.get(employee_id, work_date)
        if record is not None and record.closed:
            raise SessionClosed()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def hold_day(self, employee_id: UUID, work_date: date) -> ContextManager[None]:
        """
        Exclusive hold on one employee's day.

        Callers that must change a ticket and the day's record as one unit
        take this first and pass lock_held=True to ingest.

        Raises:
            SessionBusy: If the lock is not obtained within the timeout
        """
        return self.locks.hold(session_lock_key(employee_id, work_date))

    def _serialized(
        self,
        employee_id: UUID,
        work_date: date,
        mutate: Callable[[], T],
        lock_held: bool = False,
    ) -> T:
        """Run mutate under the record lock, retrying when a conditional write loses."""
        if lock_held:
            return self._with_retries(employee_id, work_date, mutate)
        with self.hold_day(employee_id, work_date):
            return self._with_retries(employee_id, work_date, mutate)

    def _with_retries(self, employee_id: UUID, work_date: date, mutate: Callable[[], T]) -> T:
        attempts = self.config.max_write_attempts

        for attempt in range(1, attempts + 1):
            try:
                return mutate()
            except StaleRecordError as e:
                logger.warning(
                    "Write conflict on session %s/%s (attempt %d/%d): %s",
                    employee_id, work_date, attempt, attempts, e,
                )

        raise SessionBusy()

    def ingest(
        self,
        employee_id: UUID,
        work_date: date,
        event: SessionEvent,
        lock_held: bool = False,
    ) -> DailySessionRecord:
        """
        Fold one ledger transition into the employee's record for the day.

        Creates the record on the day's first event. Appends the event
        location, adds the time delta to its bucket and mirrors the ticket's
        current and last status. The last observed time only moves forward.

        Args:
            employee_id: Employee UUID
            work_date: Day the transition belongs to
            event: The transition as seen by the record
            lock_held: Caller already holds hold_day for this day

        Returns:
            Stored record

        Raises:
            SessionClosed: If the day's session has been ended
            ClockRegression: If the event is earlier than the last observed
                time. Raised after every other update is stored; the
                exception carries the stored record.
        """
        event_time = self.clock.local_time(event.occurred_at)
        location = clean_location(event.location)

        def mutate() -> tuple[DailySessionRecord, bool]:
            current = self.sessions.get(employee_id, work_date)
            if current is None:
                return self._create(employee_id, work_date, event, event_time, location), False

            if current.closed:
                raise SessionClosed(
                    f"Session for {work_date.isoformat()} already ended. "
                    f"Status changes are no longer recorded"
                )

            regressed = event_time < current.last_time
            updates = {
                "current_status": event.status,
                "last_status": event.last_status,
                "updated_at": self.clock.now(),
            }
            if not regressed:
                updates["last_time"] = event_time
            _append_location(updates, current.locations, current.first_location, location)

            bucket = event.delta.bucket
            if bucket is not None:
                updates[bucket.field_name] = current.spent_in(bucket) + event.delta.duration

            saved = self.sessions.update(current.model_copy(update=updates), current.version)
            self._audit_update(current, saved, AuditAction.UPDATE)
            return saved, regressed

        saved, regressed = self._serialized(employee_id, work_date, mutate, lock_held=lock_held)

        if regressed:
            raise ClockRegression(
                f"Event at {format_time(event_time)} is earlier than the last recorded "
                f"time {format_time(saved.last_time)} for {work_date.isoformat()}",
                record=saved,
            )
        return saved

    def _create(
        self,
        employee_id: UUID,
        work_date: date,
        event: SessionEvent,
        event_time: time,
        location: str | None,
    ) -> DailySessionRecord:
        now = self.clock.now()
        record = DailySessionRecord(
            id=uuid4(),
            employee_id=employee_id,
            work_date=work_date,
            first_time=event_time,
            last_time=event_time,
            first_location=location,
            last_location=location,
            locations=[location] if location else [],
            current_status=event.status,
            last_status=event.last_status,
            created_at=now,
            updated_at=now,
        )
        bucket = event.delta.bucket
        if bucket is not None:
            record = record.model_copy(update={bucket.field_name: event.delta.duration})

        saved = self.sessions.insert(record)

        self.audit.log_change(
            entity=AuditEntity.DAILY_SESSION,
            entity_id=saved.id,
            action=AuditAction.CREATE,
            changes={"created": saved.model_dump(mode="json")},
            actor_id=employee_id,
        )
        logger.info(
            "Started session for employee %s on %s at %s",
            employee_id, work_date, format_time(event_time),
        )
        return saved

    def end_session(
        self,
        employee_id: UUID,
        work_date: date,
        end_time: time | None = None,
        end_location: str | None = None,
    ) -> OvertimeResult:
        """
        Close the day's record and compute its overtime.

        Morning overtime is the time before the work-day start that the first
        event preceded it by; evening overtime is how far the last observed
        time ran past the work-day end. An end time earlier than the last
        observed time does not move it back.

        Args:
            employee_id: Employee UUID
            work_date: Day to close
            end_time: Wall-clock end time (defaults to now)
            end_location: Where the employee ended the day

        Returns:
            Morning, evening and total daily overtime

        Raises:
            NoActiveSession: If no record exists for the day
            SessionAlreadyClosed: If the day was already closed
        """
        end_time = time_of_day(end_time) if end_time else self.clock.local_time(self.clock.now())
        location = clean_location(end_location)
        work_day = self.config.work_day

        def mutate() -> DailySessionRecord:
            current = self.sessions.get(employee_id, work_date)
            if current is None:
                raise NoActiveSession(
                    f"No session has started for {work_date.isoformat()} yet"
                )
            if current.closed:
                raise SessionAlreadyClosed(
                    f"Session already ended for {work_date.isoformat()}"
                )

            last_time = current.last_time
            if end_time >= last_time:
                last_time = end_time
            else:
                logger.warning(
                    "End time %s for employee %s on %s is earlier than last recorded %s; keeping %s",
                    format_time(end_time), employee_id, work_date,
                    format_time(current.last_time), format_time(current.last_time),
                )

            now = self.clock.now()
            updates = {
                "last_time": last_time,
                "morning_ot": work_day.morning_overtime(current.first_time),
                "evening_ot": work_day.evening_overtime(last_time),
                "closed": True,
                "closed_at": now,
                "updated_at": now,
            }
            _append_location(updates, current.locations, current.first_location, location)

            saved = self.sessions.update(current.model_copy(update=updates), current.version)
            self._audit_update(current, saved, AuditAction.CLOSE)
            return saved

        saved = self._serialized(employee_id, work_date, mutate)

        logger.info(
            "Session ended for employee %s on %s. Morning OT: %s, Evening OT: %s, Locations: %s",
            employee_id, work_date, saved.morning_ot, saved.evening_ot, saved.locations_summary,
        )

        if self.event_bus:
            self.event_bus.publish(SessionEnded.create(saved))

        return OvertimeResult(
            employee_id=employee_id,
            work_date=work_date,
            morning_ot=saved.morning_ot,
            evening_ot=saved.evening_ot,
            total_daily_ot=saved.total_daily_ot,
        )

    def _audit_update(
        self, old: DailySessionRecord, new: DailySessionRecord, action: AuditAction
    ) -> None:
        changes = compute_changes(old.model_dump(mode="json"), new.model_dump(mode="json"))
        if changes:
            self.audit.log_change(
                entity=AuditEntity.DAILY_SESSION,
                entity_id=new.id,
                action=action,
                changes=changes,
                actor_id=new.employee_id,
            )
