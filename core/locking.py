"""
Per-key mutual exclusion for daily session records.

Every read-modify-write of one (employee, date) record runs while holding
that record's lock. Different keys never contend.

KeyedLock covers a single process. ValkeyLock covers several API workers
sharing one Valkey instance. Both raise SessionBusy when the lock cannot be
obtained within the timeout.
"""

import logging
import threading
import time
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Protocol
from uuid import UUID, uuid4

from clients.valkey_client import ValkeyClient
from core.exceptions import SessionBusy

logger = logging.getLogger(__name__)


def session_lock_key(employee_id: UUID, work_date: date) -> str:
    return f"lock:session:{employee_id}:{work_date.isoformat()}"


class RecordLock(Protocol):
    def hold(self, key: str) -> Iterator[None]:
        ...


class KeyedLock:
    """
    In-process lock per key.

    Entries are reference counted and dropped once no thread holds or
    waits on them, so the table does not grow with every day served.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self._timeout = timeout_seconds
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}  # key -> [Lock, users]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1

        try:
            if not entry[0].acquire(timeout=self._timeout):
                logger.warning("Timed out waiting for lock %s", key)
                raise SessionBusy()
            try:
                yield
            finally:
                entry[0].release()
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class ValkeyLock:
    """
    Distributed lock per key, backed by Valkey SET NX EX.

    The stored token makes release safe: a holder whose lock expired cannot
    delete a lock that someone else now holds.
    """

    def __init__(
        self,
        valkey: ValkeyClient,
        ttl_seconds: int = 30,
        timeout_seconds: float = 5.0,
        poll_interval: float = 0.05,
    ):
        self._valkey = valkey
        self._ttl = ttl_seconds
        self._timeout = timeout_seconds
        self._poll_interval = poll_interval

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        token = str(uuid4())
        deadline = time.monotonic() + self._timeout

        while not self._valkey.set_if_absent(key, token, expire_seconds=self._ttl):
            if time.monotonic() >= deadline:
                logger.warning("Timed out waiting for lock %s", key)
                raise SessionBusy()
            time.sleep(self._poll_interval)

        try:
            yield
        finally:
            if not self._valkey.delete_if_equals(key, token):
                logger.warning("Lock %s expired before release", key)
