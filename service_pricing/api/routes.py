"""
API routes — thin HTTP layer that delegates to the CatalogService.

Routes (under settings.api_prefix, default /api/v1/client-pricing):
  GET    /                                  → List catalogs             (manager+)
  POST   /calculate                         → Price service lines       (calculate_min_role+)
  GET    /building/{building_id}            → Active catalog            (any caller)
  GET    /building/{building_id}/services   → Active services, priced   (any caller)
  GET    /{catalog_id}                      → One catalog               (manager+)
  GET    /{catalog_id}/margins              → Margin report             (manager+)
  POST   /                                  → Create catalog            (manager+)
  PUT    /{catalog_id}                      → Update catalog            (manager+)
  DELETE /{catalog_id}                      → Deactivate / purge        (admin+)
  POST   /{catalog_id}/services             → Add service               (manager+)
  PUT    /{catalog_id}/services/{service_id}→ Update service            (manager+)
  DELETE /{catalog_id}/services/{service_id}→ Remove service            (manager+)

Every pricing route is a RedactedRoute: worker callers get monetary fields
stripped from whatever the handler returns.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel

from service_pricing.access.gate import Caller, get_caller, require_role
from service_pricing.api.redacted_route import RedactedRoute
from service_pricing.config import get_settings
from service_pricing.models.enums import ApartmentType, Role
from service_pricing.models.schemas import QuoteRequest
from service_pricing.persistence.catalog_repository import (
    CatalogQuery,
    CatalogRepository,
    get_catalog_repository,
)
from service_pricing.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

# ── Routers ──────────────────────────────────────────────
health_router = APIRouter()
pricing_router = APIRouter(route_class=RedactedRoute)

managers = require_role(Role.MANAGER.value)
admins = require_role(Role.ADMIN.value)


def get_catalog_service(
    repository: CatalogRepository = Depends(get_catalog_repository),
) -> CatalogService:
    return CatalogService(repository)


def _quote_callers(request_caller: Caller = Depends(get_caller)) -> Caller:
    return require_role(get_settings().calculate_min_role)(request_caller)


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


# ── Health ───────────────────────────────────────────────

@health_router.get("/health")
def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ── Reads ────────────────────────────────────────────────

@pricing_router.get("/")
def list_catalogs(
    building: Optional[str] = None,
    company: Optional[str] = None,
    category: Optional[str] = None,
    is_active: Optional[str] = Query(None, alias="isActive"),
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    query = CatalogQuery(
        building=building,
        company_type=company,
        category=category,
        is_active=None if is_active is None else is_active == "true",
    )
    catalogs = service.list_catalogs(query)
    return {
        "success": True,
        "count": len(catalogs),
        "data": {"clientPricing": [_dump(c) for c in catalogs]},
    }


@pricing_router.post("/calculate")
def calculate_pricing(
    payload: QuoteRequest,
    caller: Caller = Depends(_quote_callers),
    service: CatalogService = Depends(get_catalog_service),
):
    quote = service.calculate(payload)
    logger.debug(
        f"Quote for building {payload.building_id} by {caller.user_id}: "
        f"{len(quote.calculations)} lines"
    )
    return {"success": True, "data": _dump(quote)}


@pricing_router.get("/building/{building_id}")
def get_building_catalog(
    building_id: str,
    caller: Caller = Depends(get_caller),
    service: CatalogService = Depends(get_catalog_service),
):
    catalog = service.get_active_for_building(building_id)
    return {"success": True, "data": {"clientPricing": _dump(catalog)}}


@pricing_router.get("/building/{building_id}/services")
def get_building_services(
    building_id: str,
    category: Optional[str] = None,
    apartment_type: ApartmentType = Query(ApartmentType.STANDARD, alias="apartmentType"),
    caller: Caller = Depends(get_caller),
    service: CatalogService = Depends(get_catalog_service),
):
    services, catalog = service.list_building_services(building_id, category, apartment_type)
    return {
        "success": True,
        "count": len(services),
        "data": {
            "services": [_dump(s) for s in services],
            "company": _dump(catalog.company),
            "terms": _dump(catalog.terms),
        },
    }


@pricing_router.get("/{catalog_id}")
def get_catalog(
    catalog_id: str,
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    return {"success": True, "data": {"clientPricing": _dump(service.get_catalog(catalog_id))}}


@pricing_router.get("/{catalog_id}/margins")
def get_catalog_margins(
    catalog_id: str,
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    return {"success": True, "data": service.margin_report(catalog_id)}


# ── Catalog writes ───────────────────────────────────────

@pricing_router.post("/", status_code=201)
def create_catalog(
    body: dict[str, Any] = Body(...),
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    catalog = service.create_catalog(body, caller)
    return {
        "success": True,
        "message": "Client pricing configuration created successfully",
        "data": {"clientPricing": _dump(catalog)},
    }


@pricing_router.put("/{catalog_id}")
def update_catalog(
    catalog_id: str,
    body: dict[str, Any] = Body(...),
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    catalog = service.update_catalog(catalog_id, body, caller)
    return {
        "success": True,
        "message": "Client pricing configuration updated successfully",
        "data": {"clientPricing": _dump(catalog)},
    }


@pricing_router.delete("/{catalog_id}")
def delete_catalog(
    catalog_id: str,
    purge: bool = False,
    caller: Caller = Depends(admins),
    service: CatalogService = Depends(get_catalog_service),
):
    service.delete_catalog(catalog_id, caller, purge=purge)
    action = "deleted" if purge else "deactivated"
    return {"success": True, "message": f"Client pricing configuration {action} successfully"}


# ── Service writes ───────────────────────────────────────

@pricing_router.post("/{catalog_id}/services")
def add_service(
    catalog_id: str,
    body: dict[str, Any] = Body(...),
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    catalog = service.add_service(catalog_id, body, caller)
    return {
        "success": True,
        "message": "Service added successfully",
        "data": {"clientPricing": _dump(catalog)},
    }


@pricing_router.put("/{catalog_id}/services/{service_id}")
def update_service(
    catalog_id: str,
    service_id: str,
    body: dict[str, Any] = Body(...),
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    catalog = service.update_service(catalog_id, service_id, body, caller)
    return {
        "success": True,
        "message": "Service updated successfully",
        "data": {"clientPricing": _dump(catalog)},
    }


@pricing_router.delete("/{catalog_id}/services/{service_id}")
def remove_service(
    catalog_id: str,
    service_id: str,
    caller: Caller = Depends(managers),
    service: CatalogService = Depends(get_catalog_service),
):
    catalog = service.remove_service(catalog_id, service_id, caller)
    return {
        "success": True,
        "message": "Service removed successfully",
        "data": {"clientPricing": _dump(catalog)},
    }
