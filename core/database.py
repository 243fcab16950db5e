"""Database operations for course materials.

Table: materials. Rows map one-to-one onto core.models.Material.
"""

import logging
from typing import Any
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.models import Material, MaterialFilter
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "level", "course_code", "course_title", "description",
    "pdf_url", "storage_key", "approved",
}


class MaterialDatabase:
    """Database operations for materials."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def insert(
        self,
        level: str,
        course_code: str,
        course_title: str,
        description: str,
        pdf_url: str,
        storage_key: str,
        uploaded_by: UUID | None,
    ) -> Material:
        """Insert a new, unapproved material."""
        now = now_utc()
        row = self._db.execute_returning(
            """
            INSERT INTO materials (
                id, level, course_code, course_title, description,
                pdf_url, storage_key, approved, uploaded_by, created_at, updated_at
            ) VALUES (
                %s, %s, %s, %s, %s,
                %s, %s, false, %s, %s, %s
            )
            RETURNING *
            """,
            (
                uuid4(), level, course_code, course_title, description,
                pdf_url, storage_key, uploaded_by, now, now,
            ),
        )[0]
        return Material.model_validate(row)

    def get_by_id(self, material_id: UUID) -> Material | None:
        """Find material by ID."""
        row = self._db.execute_single(
            "SELECT * FROM materials WHERE id = %s",
            (material_id,),
        )
        return Material.model_validate(row) if row else None

    def list_matching(self, query: MaterialFilter) -> list[Material]:
        """List materials matching query, newest first."""
        conditions = []
        params: list[Any] = []

        if query.approved_only:
            conditions.append("approved = true")

        if query.level:
            conditions.append("level = %s")
            params.append(query.level)

        if query.course_code:
            conditions.append("course_code = %s")
            params.append(query.course_code)

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        rows = self._db.execute(
            f"""
            SELECT * FROM materials
            WHERE {where_clause}
            ORDER BY created_at DESC
            """,
            tuple(params),
        )
        return [Material.model_validate(row) for row in rows]

    def update(self, material_id: UUID, fields: dict[str, Any]) -> Material | None:
        """
        Set the given columns on a material.

        Unknown columns are dropped with a warning. Returns None if the
        material does not exist.
        """
        for field in fields:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(
                    f"Attempted to update unknown field '{field}' on material {material_id}"
                )

        valid = {k: v for k, v in fields.items() if k in _UPDATABLE_COLUMNS}

        set_parts = [f"{field} = %s" for field in valid]
        params = list(valid.values())
        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.append(material_id)

        rows = self._db.execute_returning(
            f"""
            UPDATE materials
            SET {', '.join(set_parts)}
            WHERE id = %s
            RETURNING *
            """,
            tuple(params),
        )
        return Material.model_validate(rows[0]) if rows else None

    def delete(self, material_id: UUID) -> bool:
        """Delete a material row. Returns False if it did not exist."""
        rows = self._db.execute_returning(
            "DELETE FROM materials WHERE id = %s RETURNING id",
            (material_id,),
        )
        return len(rows) > 0
