"""Course material domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


def _normalize_course_code(value: str) -> str:
    """'csc 201' -> 'CSC201'."""
    return "".join(value.split()).upper()


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _required_course_code(value: str) -> str:
    value = _normalize_course_code(value)
    if not value:
        raise ValueError("must not be blank")
    return value


class MaterialCreate(BaseModel):
    """Data required to create a material (the file travels separately)."""

    level: str = Field(..., min_length=1, max_length=20)
    course_code: str = Field(..., min_length=1, max_length=20)
    course_title: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=5000)

    @field_validator("level", "course_title")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("course_code")
    @classmethod
    def normalize_course_code(cls, value: str) -> str:
        return _required_course_code(value)


class MaterialUpdate(BaseModel):
    """
    Data that can be updated on a material. All fields optional.

    A field that is sent must still satisfy the create rules: level,
    course_code and course_title cannot be blanked out.
    """

    level: str | None = Field(None, min_length=1, max_length=20)
    course_code: str | None = Field(None, min_length=1, max_length=20)
    course_title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    approved: bool | None = None

    @field_validator("level", "course_title")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return _required_text(value) if value is not None else None

    @field_validator("course_code")
    @classmethod
    def normalize_course_code(cls, value: str | None) -> str | None:
        return _required_course_code(value) if value is not None else None


class MaterialFilter(BaseModel):
    """List query. approved_only=False disables the approval filter entirely."""

    level: str | None = None
    course_code: str | None = None
    approved_only: bool = True

    @field_validator("course_code")
    @classmethod
    def normalize_course_code(cls, value: str | None) -> str | None:
        return _normalize_course_code(value) if value else None


class Material(BaseModel):
    """Full material entity as stored."""

    id: UUID
    level: str
    course_code: str
    course_title: str
    description: str
    pdf_url: str
    storage_key: str
    approved: bool
    uploaded_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
