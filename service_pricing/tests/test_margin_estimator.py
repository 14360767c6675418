"""
Tests: MarginEstimator.

Run with:
    pytest service_pricing/tests/test_margin_estimator.py -v
"""

import math

import pytest

from service_pricing.models.schemas import Company, Cost, Pricing, PricingCatalog, ServiceRule
from service_pricing.pricing.margin_estimator import (
    MarginEstimator,
    average_margin,
    service_margin,
    total_cost_with_overhead,
)


def _rule(base_price, labor=0, material=0, equipment=0, overhead=0, active=True) -> ServiceRule:
    return ServiceRule(
        category="painting",
        subcategory="interior_painting",
        name="Interior painting",
        description="Walls and ceilings, two coats",
        pricing=Pricing(base_price=base_price, unit_type="per_room"),
        cost=Cost(labor_cost=labor, material_cost=material, equipment_cost=equipment, overhead_percentage=overhead),
        is_active=active,
    )


class TestServiceMargin:
    def test_margin_with_overhead(self):
        rule = _rule(200, labor=60, material=30, equipment=10, overhead=20)
        assert total_cost_with_overhead(rule) == 120
        assert service_margin(rule) == 40

    def test_zero_base_price_is_zero_margin(self):
        rule = _rule(0, labor=500, material=100, overhead=50)
        margin = service_margin(rule)
        assert margin == 0
        assert math.isfinite(margin)

    def test_default_overhead_is_fifteen_percent(self):
        rule = ServiceRule(
            category="repairs",
            subcategory="drywall",
            name="Drywall patch",
            description="Patch and sand drywall damage",
            pricing=Pricing(base_price=100, unit_type="fixed"),
            cost=Cost(labor_cost=40),
        )
        assert total_cost_with_overhead(rule) == pytest.approx(46.0)


class TestCatalogMargin:
    def test_unweighted_mean_of_active_services(self):
        rules = [
            _rule(100, labor=50),          # 50%
            _rule(100, labor=90),          # 10%
            _rule(100, labor=0, active=False),
        ]
        assert average_margin(rules) == pytest.approx(30)

    def test_empty_catalog_is_zero(self):
        assert average_margin([]) == 0

    def test_catalog_exposes_average_margin(self):
        catalog = PricingCatalog(
            company=Company(name="Vista", type="vista"),
            building="b-1",
            services=[_rule(100, labor=50)],
            created_by="u-1",
        )
        dumped = catalog.model_dump(by_alias=True)
        assert dumped["averageProfitMargin"] == 50
        assert "averageProfitMargin" not in catalog.to_document()

    def test_report_lists_every_service(self):
        report = MarginEstimator().estimate([_rule(100, labor=50), _rule(0)])
        assert [s["marginPercentage"] for s in report["services"]] == [50, 0]
        assert report["averageProfitMargin"] == 25
