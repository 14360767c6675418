"""
Catalog Service — catalog lookups, quotes and mutations.

Every operation reads the current catalog from the repository; nothing is
cached between calls. Writes go through ``_store`` which bumps the revision
and fails with ConflictError if someone else wrote in between.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from service_pricing.access.gate import Caller
from service_pricing.errors import ConflictError, InternalError, NotFoundError, ValidationError
from service_pricing.models.enums import ApartmentType
from service_pricing.models.schemas import (
    PricedService,
    PricingCatalog,
    Quote,
    QuoteRequest,
    ServiceRule,
)
from service_pricing.persistence.catalog_repository import CatalogQuery, CatalogRepository
from service_pricing.pricing.margin_estimator import MarginEstimator
from service_pricing.pricing.quote_calculator import QuoteCalculator, calculated_pricing

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

CATALOG_NOT_FOUND = "Client pricing configuration not found"
BUILDING_NOT_CONFIGURED = "No pricing configuration found for this building"
SERVICE_NOT_FOUND = "Service not found in this pricing configuration"

# Keys a client may never write directly.
_READ_ONLY_KEYS = frozenset({
    "_id", "id",
    "createdBy", "createdAt", "updatedBy", "updatedAt",
    "revision", "averageProfitMargin",
})


def field_errors(exc: PydanticValidationError) -> list[str]:
    """One ``"<path>: <message>"`` line per failing field."""
    messages = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"])
        messages.append(f"{path}: {err['msg']}" if path else err["msg"])
    return messages


def validate_model(model_cls: type[M], data: dict[str, Any]) -> M:
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(field_errors(e)) from e


def required_service_fields(body: dict[str, Any]) -> list[str]:
    errors = []
    if not body.get("category"):
        errors.append("Service category is required")
    if not body.get("subcategory"):
        errors.append("Service subcategory is required")
    if not body.get("name"):
        errors.append("Service name is required")
    if not body.get("description"):
        errors.append("Service description is required")
    pricing = body.get("pricing")
    if not isinstance(pricing, dict):
        pricing = {}
    if pricing.get("basePrice") is None:
        errors.append("Service pricing with basePrice is required")
    if not pricing.get("unitType"):
        errors.append("Service unitType is required")
    return errors


def non_empty_service_fields(body: dict[str, Any]) -> list[str]:
    errors = []
    for key in ("category", "subcategory", "name", "description"):
        if key in body and not body[key]:
            errors.append(f"Service {key} cannot be empty")
    if "pricing" in body:
        pricing = body["pricing"]
        if not isinstance(pricing, dict) or pricing.get("basePrice") is None:
            errors.append("Service basePrice cannot be empty")
    return errors


def _writable(body: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in body.items() if key not in _READ_ONLY_KEYS}


class CatalogService:
    """Catalog use-cases over a repository."""

    def __init__(self, repository: CatalogRepository):
        self.repository = repository
        self.calculator = QuoteCalculator()
        self.margins = MarginEstimator()

    # ── Loading & storing ────────────────────────────────

    def _load(self, doc: dict[str, Any]) -> PricingCatalog:
        try:
            return PricingCatalog.model_validate(doc)
        except PydanticValidationError as e:
            logger.exception(f"Stored catalog {doc.get('_id')} failed validation: {e}")
            raise InternalError() from e

    def _store(self, catalog: PricingCatalog, caller: Caller) -> PricingCatalog:
        expected = catalog.revision
        catalog.revision = expected + 1
        catalog.updated_by = caller.user_id
        catalog.updated_at = datetime.now(timezone.utc)
        if not self.repository.replace(catalog.to_document(), expected):
            logger.warning(f"Revision conflict on catalog {catalog.id} (expected r{expected})")
            raise ConflictError(
                "Client pricing configuration was modified by another request; reload and retry"
            )
        logger.info(f"Saved catalog {catalog.id} r{catalog.revision} by {caller.user_id}")
        return catalog

    # ── Reads ────────────────────────────────────────────

    def list_catalogs(self, query: CatalogQuery) -> list[PricingCatalog]:
        return [self._load(doc) for doc in self.repository.find(query)]

    def get_catalog(self, catalog_id: str) -> PricingCatalog:
        doc = self.repository.get(catalog_id)
        if doc is None:
            raise NotFoundError(CATALOG_NOT_FOUND)
        return self._load(doc)

    def get_active_for_building(self, building_id: str) -> PricingCatalog:
        """The building's active catalog; the oldest wins if several are active."""
        docs = self.repository.find_active_for_building(building_id)
        if not docs:
            raise NotFoundError(BUILDING_NOT_CONFIGURED)
        if len(docs) > 1:
            logger.warning(
                f"Building {building_id} has {len(docs)} active catalogs; using {docs[0].get('_id')}"
            )
        return self._load(docs[0])

    def list_building_services(
        self,
        building_id: str,
        category: Optional[str] = None,
        apartment_type: ApartmentType | str = ApartmentType.STANDARD,
    ) -> tuple[list[PricedService], PricingCatalog]:
        catalog = self.get_active_for_building(building_id)
        services = catalog.active_services()
        if category:
            services = [rule for rule in services if rule.category == category]
        priced = [
            PricedService(
                **rule.model_dump(),
                calculated_pricing=calculated_pricing(rule, apartment_type),
            )
            for rule in services
        ]
        return priced, catalog

    def calculate(self, request: QuoteRequest) -> Quote:
        catalog = self.get_active_for_building(request.building_id)
        return self.calculator.quote(catalog, request.services, request.apartment_type)

    def margin_report(self, catalog_id: str) -> dict[str, Any]:
        catalog = self.get_catalog(catalog_id)
        report = self.margins.estimate(catalog.services)
        report["catalogId"] = catalog.id
        return report

    # ── Catalog writes ───────────────────────────────────

    def create_catalog(self, body: dict[str, Any], caller: Caller) -> PricingCatalog:
        data = _writable(body)
        data["createdBy"] = caller.user_id
        catalog = validate_model(PricingCatalog, data)

        if catalog.is_active and self.repository.find_active_for_building(catalog.building):
            logger.warning(f"Building {catalog.building} already has an active catalog")

        self.repository.insert(catalog.to_document())
        logger.info(f"Created catalog {catalog.id} for building {catalog.building} by {caller.user_id}")
        return catalog

    def update_catalog(self, catalog_id: str, body: dict[str, Any], caller: Caller) -> PricingCatalog:
        current = self.get_catalog(catalog_id)
        expected = body.get("revision")
        if expected is not None and expected != current.revision:
            raise ConflictError(
                f"Client pricing configuration is at revision {current.revision}, not {expected}"
            )

        data = current.to_document()
        data.update(_writable(body))
        catalog = validate_model(PricingCatalog, data)
        return self._store(catalog, caller)

    def delete_catalog(self, catalog_id: str, caller: Caller, purge: bool = False) -> None:
        """Deactivate a catalog, or remove it outright when ``purge`` is set."""
        catalog = self.get_catalog(catalog_id)
        if purge:
            self.repository.delete(catalog.id)
            logger.info(f"Purged catalog {catalog.id} by {caller.user_id}")
            return
        catalog.is_active = False
        self._store(catalog, caller)

    # ── Service writes ───────────────────────────────────

    def add_service(self, catalog_id: str, body: dict[str, Any], caller: Caller) -> PricingCatalog:
        catalog = self.get_catalog(catalog_id)
        errors = required_service_fields(body)
        if errors:
            raise ValidationError(errors)

        rule = validate_model(ServiceRule, _writable(body))
        catalog.add_service(rule)
        logger.info(f"Adding service {rule.id} ({rule.category}/{rule.subcategory}) to {catalog.id}")
        return self._store(catalog, caller)

    def update_service(
        self, catalog_id: str, service_id: str, body: dict[str, Any], caller: Caller
    ) -> PricingCatalog:
        catalog = self.get_catalog(catalog_id)
        current = catalog.get_service(service_id)
        if current is None:
            raise NotFoundError(SERVICE_NOT_FOUND)
        errors = non_empty_service_fields(body)
        if errors:
            raise ValidationError(errors)

        data = current.model_dump(mode="json", by_alias=True)
        data.update(_writable(body))
        catalog.replace_service(validate_model(ServiceRule, data))
        return self._store(catalog, caller)

    def remove_service(self, catalog_id: str, service_id: str, caller: Caller) -> PricingCatalog:
        catalog = self.get_catalog(catalog_id)
        if catalog.get_service(service_id) is None:
            raise NotFoundError(SERVICE_NOT_FOUND)
        catalog.remove_service(service_id)
        logger.info(f"Removing service {service_id} from {catalog.id}")
        return self._store(catalog, caller)
