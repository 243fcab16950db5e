"""Core domain models."""

from core.models.material import Material, MaterialCreate, MaterialUpdate, MaterialFilter

__all__ = [
    "Material", "MaterialCreate", "MaterialUpdate", "MaterialFilter",
]
