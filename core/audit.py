"""
Audit trail for material changes.

One append-only audit_log row per upload, edit, approval flip and
deletion, attributed to the acting account.
"""

from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.user_context import get_current_account_id
from utils.timezone import now_utc


class AuditAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    APPROVAL = "approval"
    DELETE = "delete"


def compute_changes(
    before: dict[str, Any],
    after: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Field-level diff of two serialized records.

    Returns {field: {"old": ..., "new": ...}} for every field whose value
    differs, a missing field counting as None. updated_at is ignored unless
    exclude_fields is given explicitly.
    """
    skip = {"updated_at"} if exclude_fields is None else exclude_fields

    return {
        field: {"old": before.get(field), "new": after.get(field)}
        for field in sorted(set(before) | set(after))
        if field not in skip and before.get(field) != after.get(field)
    }


class AuditLogger:
    """
    Writes audit_log rows.

    Serialize models with model_dump(mode="json") before passing them in
    so UUIDs and datetimes are JSON-safe.
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        account_id: UUID | None = None
    ) -> None:
        """
        Record one change.

        changes is {"created": record} for CREATE, {"deleted": record} for
        DELETE, and a compute_changes() diff otherwise. account_id defaults
        to the identity of the current request, None outside one.
        """
        actor = account_id if account_id is not None else get_current_account_id()

        self.postgres.execute(
            """
            INSERT INTO audit_log (id, account_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (uuid4(), actor, entity_type, entity_id, action.value, Json(changes), now_utc()),
        )
