"""Services — CatalogService."""

from service_pricing.services.catalog_service import CatalogService

__all__ = ["CatalogService"]
