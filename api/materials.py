"""HTTP routes for course materials.

Reads are public; uploads, edits and deletes need a bearer token;
approval needs an admin token.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ValidationError

from api.base import success_response
from auth.security_middleware import require_admin
from core.exceptions import MaterialNotFoundError, MaterialValidationError
from core.models import MaterialCreate, MaterialUpdate, MaterialFilter
from core.services.material_service import MaterialService, MaterialUpload


def _validated(model_cls: type[BaseModel], **fields) -> BaseModel:
    """Build a model from form fields, reporting problems as a 400."""
    try:
        return model_cls(**fields)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MaterialValidationError(problems)


def _as_upload(file: UploadFile | None) -> MaterialUpload | None:
    if file is None:
        return None
    return MaterialUpload(filename=file.filename or "", stream=file.file)


def _material_id(raw: str) -> UUID:
    """Path id as a UUID. Anything unparseable cannot name a material."""
    try:
        return UUID(raw)
    except ValueError:
        raise MaterialNotFoundError(f"Material {raw} not found")


def create_materials_router(material_service: MaterialService) -> APIRouter:
    """Create materials router with injected service."""
    router = APIRouter(tags=["materials"])

    @router.get("/materials")
    def list_materials(
        level: str | None = Query(None),
        course_code: str | None = Query(None, alias="course-code"),
        approved: bool = Query(True),
    ):
        """List materials. approved=false includes unapproved ones."""
        query = MaterialFilter(level=level, course_code=course_code, approved_only=approved)
        materials = material_service.list_materials(query)
        return success_response(
            [m.model_dump(mode="json") for m in materials]
        ).model_dump(mode="json")

    @router.get("/materials/{material_id}")
    def get_material(material_id: str):
        material = material_service.get_by_id(_material_id(material_id))
        return success_response(material.model_dump(mode="json")).model_dump(mode="json")

    @router.post("/materials", status_code=201)
    def create_material(
        level: str = Form(...),
        course_code: str = Form(...),
        course_title: str = Form(...),
        description: str = Form(""),
        material: UploadFile | None = File(None),
    ):
        """Upload a PDF. The new material awaits admin approval."""
        data = _validated(
            MaterialCreate,
            level=level,
            course_code=course_code,
            course_title=course_title,
            description=description,
        )
        created = material_service.create(data, _as_upload(material))
        return success_response(created.model_dump(mode="json")).model_dump(mode="json")

    @router.put("/materials/{material_id}")
    def update_material(
        material_id: str,
        level: str | None = Form(None),
        course_code: str | None = Form(None),
        course_title: str | None = Form(None),
        description: str | None = Form(None),
        approved: bool | None = Form(None),
        material: UploadFile | None = File(None),
    ):
        """Edit fields and optionally replace the PDF."""
        target = _material_id(material_id)
        data = _validated(
            MaterialUpdate,
            level=level,
            course_code=course_code,
            course_title=course_title,
            description=description,
            approved=approved,
        )
        updated = material_service.update(target, data, _as_upload(material))
        return success_response(updated.model_dump(mode="json")).model_dump(mode="json")

    @router.delete("/materials/{material_id}")
    def delete_material(material_id: str):
        material_service.delete(_material_id(material_id))
        return success_response({
            "deleted": True,
            "message": "Material deleted successfully",
        }).model_dump(mode="json")

    @router.patch("/materials/{material_id}/approval", dependencies=[Depends(require_admin)])
    def toggle_approval(material_id: str):
        """Flip approval (admin only)."""
        material = material_service.toggle_approval(_material_id(material_id))
        return success_response(material.model_dump(mode="json")).model_dump(mode="json")

    return router
