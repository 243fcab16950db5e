"""
Material service - the course material catalog.

Materials are PDFs uploaded by authenticated accounts. Each record points
at one object in the blob store. New uploads start unapproved; only
admins change the approval flag. Anyone can read approved materials.
"""

import logging
import re
from dataclasses import dataclass
from typing import BinaryIO
from uuid import UUID

from auth.exceptions import ForbiddenError
from clients.storage_client import BlobStore, StorageError
from core.audit import AuditLogger, AuditAction, compute_changes
from core.database import MaterialDatabase
from core.exceptions import MaterialNotFoundError, MaterialValidationError
from core.models import Material, MaterialCreate, MaterialUpdate, MaterialFilter
from utils.user_context import get_current_account_id, get_current_identity
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
_PDF_MAGIC = b"%PDF-"
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class MaterialUpload:
    """An uploaded file as received from the HTTP layer."""

    filename: str
    stream: BinaryIO


def _safe_segment(value: str) -> str:
    """Make value usable as one segment of an object key."""
    cleaned = _UNSAFE_KEY_CHARS.sub("_", value.strip()).strip("._")
    return cleaned or "file"


def build_storage_key(level: str, course_code: str, filename: str) -> str:
    """<level>/<course_code>/<epoch millis>_<filename>"""
    timestamp = int(now_utc().timestamp() * 1000)
    return f"{_safe_segment(level)}/{_safe_segment(course_code)}/{timestamp}_{_safe_segment(filename)}"


def validate_pdf_upload(upload: MaterialUpload | None) -> MaterialUpload:
    """
    Check that an upload is present and is a PDF.

    Reads the first bytes of the stream and rewinds it.

    Raises:
        MaterialValidationError: If missing, unnamed, or not a PDF.
    """
    if upload is None or not upload.filename:
        raise MaterialValidationError("Please upload a PDF file")

    header = upload.stream.read(len(_PDF_MAGIC))
    upload.stream.seek(0)
    if header != _PDF_MAGIC:
        raise MaterialValidationError("Uploaded file is not a PDF")

    return upload


class MaterialService:
    """Service for material operations."""

    def __init__(self, material_db: MaterialDatabase, blob_store: BlobStore, audit: AuditLogger):
        self.material_db = material_db
        self.blob_store = blob_store
        self.audit = audit

    def _store_file(self, level: str, course_code: str, upload: MaterialUpload) -> tuple[str, str]:
        """Upload the file; returns (storage_key, public_url)."""
        key = build_storage_key(level, course_code, upload.filename)
        url = self.blob_store.put(key, upload.stream, PDF_CONTENT_TYPE)
        return key, url

    def _discard_object(self, key: str) -> None:
        """Best-effort delete of an object no record points at."""
        try:
            self.blob_store.delete(key)
        except StorageError as e:
            logger.warning(f"Orphaned object {key} left in storage: {e}")

    def create(self, data: MaterialCreate, upload: MaterialUpload | None) -> Material:
        """
        Store the file and create an unapproved material.

        Raises:
            MaterialValidationError: If the file is missing or not a PDF.
        """
        upload = validate_pdf_upload(upload)
        key, url = self._store_file(data.level, data.course_code, upload)

        try:
            material = self.material_db.insert(
                level=data.level,
                course_code=data.course_code,
                course_title=data.course_title,
                description=data.description,
                pdf_url=url,
                storage_key=key,
                uploaded_by=get_current_account_id(),
            )
        except Exception:
            self._discard_object(key)
            raise

        self.audit.log_change(
            entity_type="material",
            entity_id=material.id,
            action=AuditAction.CREATE,
            changes={"created": material.model_dump(mode="json")},
        )

        logger.info(f"Material {material.id} uploaded for {material.course_code}")
        return material

    def get_by_id(self, material_id: UUID) -> Material:
        """
        Get material by ID.

        Raises:
            MaterialNotFoundError: If no such material.
        """
        material = self.material_db.get_by_id(material_id)
        if material is None:
            raise MaterialNotFoundError(f"Material {material_id} not found")
        return material

    def list_materials(self, query: MaterialFilter) -> list[Material]:
        """List materials, approved only unless query says otherwise."""
        return self.material_db.list_matching(query)

    def update(
        self,
        material_id: UUID,
        data: MaterialUpdate,
        upload: MaterialUpload | None = None,
    ) -> Material:
        """
        Update fields and optionally replace the file.

        A replaced file is deleted from the blob store once the record
        points at the new one.

        Raises:
            MaterialNotFoundError: If no such material.
            ForbiddenError: If a non-admin tries to change approval.
            MaterialValidationError: If the new file is not a PDF.
        """
        current = self.get_by_id(material_id)

        updates = data.model_dump(exclude_none=True)
        if "approved" in updates:
            if updates["approved"] == current.approved:
                del updates["approved"]
            elif not get_current_identity().is_admin:
                raise ForbiddenError("Access denied: Admin permissions required")

        new_key = None
        if upload is not None:
            upload = validate_pdf_upload(upload)
            new_key, url = self._store_file(
                updates.get("level", current.level),
                updates.get("course_code", current.course_code),
                upload,
            )
            updates["storage_key"] = new_key
            updates["pdf_url"] = url

        if not updates:
            return current

        try:
            updated = self.material_db.update(material_id, updates)
        except Exception:
            if new_key is not None:
                self._discard_object(new_key)
            raise

        if updated is None:
            if new_key is not None:
                self._discard_object(new_key)
            raise MaterialNotFoundError(f"Material {material_id} not found")

        if new_key is not None:
            self._discard_object(current.storage_key)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json"),
        )
        if changes:
            self.audit.log_change(
                entity_type="material",
                entity_id=material_id,
                action=AuditAction.UPDATE,
                changes=changes,
            )

        return updated

    def toggle_approval(self, material_id: UUID) -> Material:
        """
        Flip the approval flag. Callers must have checked the admin role.

        Raises:
            MaterialNotFoundError: If no such material.
        """
        current = self.get_by_id(material_id)

        updated = self.material_db.update(material_id, {"approved": not current.approved})
        if updated is None:
            raise MaterialNotFoundError(f"Material {material_id} not found")

        self.audit.log_change(
            entity_type="material",
            entity_id=material_id,
            action=AuditAction.APPROVAL,
            changes={"approved": {"old": current.approved, "new": updated.approved}},
        )

        logger.info(f"Material {material_id} approved={updated.approved}")
        return updated

    def delete(self, material_id: UUID) -> None:
        """
        Delete a material and its file.

        The record and its audit entry are authoritative; a file that
        cannot be removed is logged and left behind.

        Raises:
            MaterialNotFoundError: If no such material.
        """
        current = self.get_by_id(material_id)

        if not self.material_db.delete(material_id):
            raise MaterialNotFoundError(f"Material {material_id} not found")

        self.audit.log_change(
            entity_type="material",
            entity_id=material_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")},
        )

        self._discard_object(current.storage_key)
