from __future__ import annotations


class CatalogError(Exception):
    """Base class for failures surfaced by the catalog services."""

    message = "Catalog operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)

    @property
    def detail(self) -> str:
        return str(self)


class ValidationError(CatalogError):
    message = "Invalid input"


class NotFound(CatalogError):
    message = "Not found"

    def __init__(self, entity: str = "Resource", identifier: str | None = None):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found")


class DuplicateSku(CatalogError):
    message = "SKU already exists, must be unique"

    def __init__(self, sku: str | None):
        self.sku = sku
        if sku:
            super().__init__(f"SKU '{sku}' already exists, must be unique")
        else:
            super().__init__()


class Conflict(CatalogError):
    message = "Resource already exists"


class PersistenceFailure(CatalogError):
    message = "Persistence failure"
