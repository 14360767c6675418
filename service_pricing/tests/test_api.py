"""
Tests: HTTP surface — access tiers, envelopes and worker redaction.

Run with:
    pytest service_pricing/tests/test_api.py -v
"""

import json

import pytest
from fastapi.testclient import TestClient

from service_pricing.access.redaction import FieldRedactor
from service_pricing.api import app
from service_pricing.api.redacted_route import WITHHELD_MESSAGE
from service_pricing.persistence.catalog_repository import (
    InMemoryCatalogRepository,
    get_catalog_repository,
)

BASE = "/api/v1/client-pricing"


def _headers(role: str, user_id: str = "u-1") -> dict:
    return {"X-User-Id": user_id, "X-User-Role": role}


def _catalog_body() -> dict:
    return {
        "company": {"name": "Greystar", "type": "greystar"},
        "building": "building-x",
        "terms": {"discountPercentage": 5},
        "services": [{
            "_id": "svc-deep",
            "category": "cleaning",
            "subcategory": "deep_cleaning",
            "name": "Deep cleaning",
            "description": "Full-unit deep clean at turnover",
            "pricing": {
                "basePrice": 120,
                "unitType": "per_apartment",
                "minimumCharge": 100,
                "apartmentTypePricing": [{"apartmentType": "loft", "price": 150}],
            },
            "cost": {"laborCost": 40},
        }],
    }


@pytest.fixture
def client():
    repository = InMemoryCatalogRepository()
    app.dependency_overrides[get_catalog_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def catalog_id(client):
    response = client.post(f"{BASE}/", json=_catalog_body(), headers=_headers("manager"))
    assert response.status_code == 201
    return response.json()["data"]["clientPricing"]["_id"]


def _quote(client, role):
    return client.post(
        f"{BASE}/calculate",
        json={"buildingId": "building-x", "services": [{"serviceId": "svc-deep", "quantity": 1}]},
        headers=_headers(role),
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAccess:
    def test_anonymous_rejected(self, client):
        response = client.get(f"{BASE}/")
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "You are not logged in"}

    def test_worker_cannot_list(self, client):
        response = client.get(f"{BASE}/", headers=_headers("worker"))
        assert response.status_code == 403
        body = response.json()
        assert body["requiredRole"] == "manager"
        assert body["yourRole"] == "worker"

    def test_unknown_role_is_below_worker(self, client, catalog_id):
        response = client.get(f"{BASE}/building/building-x", headers=_headers("guest"))
        assert response.status_code == 200
        assert _quote(client, "guest").status_code == 403

    def test_only_admin_can_delete(self, client, catalog_id):
        assert client.delete(f"{BASE}/{catalog_id}", headers=_headers("manager")).status_code == 403
        assert client.delete(f"{BASE}/{catalog_id}", headers=_headers("superuser")).status_code == 200


class TestCatalogRoutes:
    def test_list_and_filter(self, client, catalog_id):
        response = client.get(f"{BASE}/", params={"company": "greystar", "isActive": "true"}, headers=_headers("manager"))
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 1
        assert body["data"]["clientPricing"][0]["_id"] == catalog_id

        response = client.get(f"{BASE}/", params={"isActive": "false"}, headers=_headers("manager"))
        assert response.json()["count"] == 0

    def test_out_of_range_price_is_400_and_store_stays_clean(self, client):
        raw = json.dumps(_catalog_body()).replace('"basePrice": 120', '"basePrice": 1e400')
        headers = {**_headers("manager"), "Content-Type": "application/json"}
        response = client.post(f"{BASE}/", content=raw, headers=headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Validation error"

        listing = client.get(f"{BASE}/", headers=_headers("manager"))
        assert listing.status_code == 200
        assert listing.json()["count"] == 0

    def test_get_includes_average_margin(self, client, catalog_id):
        response = client.get(f"{BASE}/{catalog_id}", headers=_headers("admin"))
        catalog = response.json()["data"]["clientPricing"]
        assert "averageProfitMargin" in catalog
        assert catalog["revision"] == 1

    def test_missing_catalog_is_404(self, client):
        response = client.get(f"{BASE}/nope", headers=_headers("manager"))
        assert response.status_code == 404
        assert response.json()["message"] == "Client pricing configuration not found"

    def test_building_without_catalog_is_404(self, client):
        response = client.get(f"{BASE}/building/elsewhere", headers=_headers("worker"))
        assert response.status_code == 404

    def test_add_service_validation_error(self, client, catalog_id):
        response = client.post(
            f"{BASE}/{catalog_id}/services",
            json={"subcategory": "x", "name": "y", "pricing": {"basePrice": 10}},
            headers=_headers("manager"),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation error"
        assert body["errors"] == [
            "Service category is required",
            "Service description is required",
            "Service unitType is required",
        ]

    def test_stale_update_is_409(self, client, catalog_id):
        headers = _headers("manager")
        assert client.put(f"{BASE}/{catalog_id}", json={"revision": 1, "isActive": True}, headers=headers).status_code == 200
        response = client.put(f"{BASE}/{catalog_id}", json={"revision": 1, "isActive": False}, headers=headers)
        assert response.status_code == 409

    def test_service_lifecycle(self, client, catalog_id):
        headers = _headers("manager")
        service = {
            "category": "repairs",
            "subcategory": "drywall",
            "name": "Drywall patch",
            "description": "Patch and sand drywall damage",
            "pricing": {"basePrice": 60, "unitType": "fixed"},
        }
        added = client.post(f"{BASE}/{catalog_id}/services", json=service, headers=headers).json()
        new_id = added["data"]["clientPricing"]["services"][1]["_id"]

        updated = client.put(f"{BASE}/{catalog_id}/services/{new_id}", json={"name": "Drywall repair"}, headers=headers)
        assert updated.json()["data"]["clientPricing"]["services"][1]["name"] == "Drywall repair"

        removed = client.delete(f"{BASE}/{catalog_id}/services/{new_id}", headers=headers)
        assert [s["_id"] for s in removed.json()["data"]["clientPricing"]["services"]] == ["svc-deep"]

        missing = client.delete(f"{BASE}/{catalog_id}/services/{new_id}", headers=headers)
        assert missing.status_code == 404


class TestCalculate:
    def test_manager_sees_totals(self, client, catalog_id):
        body = _quote(client, "manager").json()["data"]
        line = body["calculations"][0]
        assert line["serviceId"] == "svc-deep"
        assert line["subtotal"] == 120
        assert line["total"] == 114.0
        assert line["discount"] == 6.0
        assert body["totalAmount"] == 114.0
        assert body["company"]["type"] == "greystar"

    def test_unknown_service_line(self, client, catalog_id):
        response = client.post(
            f"{BASE}/calculate",
            json={"buildingId": "building-x", "services": [{"serviceId": "ghost"}]},
            headers=_headers("manager"),
        )
        assert response.json()["data"]["calculations"] == [{"serviceId": "ghost", "error": "Service not found"}]

    def test_malformed_request_is_400(self, client, catalog_id):
        response = client.post(f"{BASE}/calculate", json={"services": "all"}, headers=_headers("manager"))
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestWorkerRedaction:
    def test_quote_totals_stripped_for_worker(self, client, catalog_id):
        response = _quote(client, "worker")
        assert response.status_code == 200
        line = response.json()["data"]["calculations"][0]
        assert "total" not in line
        assert "subtotal" not in line
        assert line["basePrice"] == 120
        assert "cost" not in line["service"]

    def test_supervisor_not_redacted(self, client, catalog_id):
        line = _quote(client, "supervisor").json()["data"]["calculations"][0]
        assert line["total"] == 114.0

    def test_services_listing_redacted(self, client, catalog_id):
        response = client.get(
            f"{BASE}/building/building-x/services",
            params={"apartmentType": "loft"},
            headers=_headers("worker"),
        )
        service = response.json()["data"]["services"][0]
        assert service["calculatedPricing"]["basePrice"] == 150
        assert "cost" not in service
        assert all("price" not in o for o in service["pricing"]["apartmentTypePricing"])

    def test_redaction_failure_fails_closed(self, client, catalog_id, monkeypatch):
        def broken(self, payload):
            raise RuntimeError("redactor exploded")

        monkeypatch.setattr(FieldRedactor, "redact", broken)
        response = _quote(client, "worker")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": WITHHELD_MESSAGE}
        assert "114" not in response.text
