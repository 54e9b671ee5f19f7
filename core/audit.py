"""
Audit trail for ledger and session record changes.

Every mutation the engine makes is logged here. The audit log is:
- Append-only (entries never modified or deleted)
- Attributed (the employee whose day was changed)
- Detailed (captures old and new values)
"""

from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    CLOSE = "close"


class AuditEntity(Enum):
    """Audited entity types."""

    TICKET_LEDGER = "ticket_ledger"
    DAILY_SESSION = "daily_session"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity
        new: New state of entity
        exclude_fields: Fields to ignore (defaults to {"updated_at", "version"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at", "version"}
    changes = {}

    for key in sorted(set(old) | set(new)):
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


class AuditLogger:
    """
    Append-only audit writer.

    Always pass model_dump(mode="json") output so UUIDs, dates and
    durations are JSON-compatible.

    Usage:
        audit = AuditLogger(postgres)

        audit.log_change(
            entity=AuditEntity.DAILY_SESSION,
            entity_id=record.id,
            action=AuditAction.CLOSE,
            changes=compute_changes(old.model_dump(mode="json"), new.model_dump(mode="json")),
            actor_id=record.employee_id,
        )
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity: AuditEntity,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        actor_id: UUID,
    ) -> None:
        """
        Log an entity change.

        Changes format by action:
        - CREATE: {"created": {full entity data}}
        - UPDATE / CLOSE: {"field": {"old": old_val, "new": new_val}, ...}
        """
        self.postgres.execute(
            """
            INSERT INTO audit_log (id, actor_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(),
                actor_id,
                entity.value,
                entity_id,
                action.value,
                Json(changes),
                now_utc()
            )
        )

    def get_entity_history(self, entity: AuditEntity, entity_id: UUID) -> list[dict[str, Any]]:
        """
        Get full audit history for an entity, newest first.
        """
        return self.postgres.execute(
            """
            SELECT id, actor_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            """,
            (entity.value, entity_id)
        )
