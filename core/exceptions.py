"""Typed exceptions for material catalog failures."""


class CatalogError(Exception):
    """Base class for material catalog errors."""


class MaterialNotFoundError(CatalogError):
    """No material with the requested ID."""


class MaterialValidationError(CatalogError):
    """Upload or update payload is missing fields or carries an unusable file."""
