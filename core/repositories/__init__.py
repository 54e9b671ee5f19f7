"""Table-level persistence for ledgers and daily session records."""

from core.repositories.ledger_repository import LedgerStore, PostgresLedgerRepository
from core.repositories.session_repository import SessionStore, PostgresSessionRepository
