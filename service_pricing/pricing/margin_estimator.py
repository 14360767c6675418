"""
Margin Estimator — cost and profit margin derived from a catalog's rules.

Read-only: nothing here touches storage or mutates a rule. The catalog-level
figure is a plain mean over active services, not weighted by volume.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from service_pricing.models.schemas import ServiceRule


def total_cost(rule: ServiceRule) -> float:
    cost = rule.cost
    return (cost.labor_cost or 0) + (cost.material_cost or 0) + (cost.equipment_cost or 0)


def total_cost_with_overhead(rule: ServiceRule) -> float:
    return total_cost(rule) * (1 + (rule.cost.overhead_percentage or 0) / 100)


def service_margin(rule: ServiceRule) -> float:
    """Profit margin in percent of base price; 0 when the base price is 0."""
    base_price = rule.pricing.base_price or 0
    if base_price == 0:
        return 0.0
    return (base_price - total_cost_with_overhead(rule)) / base_price * 100


def average_margin(rules: Iterable[ServiceRule]) -> float:
    margins = [service_margin(rule) for rule in rules if rule.is_active]
    if not margins:
        return 0.0
    return sum(margins) / len(margins)


def margin_breakdown(rule: ServiceRule) -> dict[str, Any]:
    """Per-service figures behind the margin, keyed for the wire."""
    return {
        "serviceId": rule.id,
        "name": rule.name,
        "category": rule.category,
        "isActive": rule.is_active,
        "basePrice": rule.pricing.base_price,
        "totalCost": total_cost(rule),
        "totalCostWithOverhead": total_cost_with_overhead(rule),
        "marginPercentage": service_margin(rule),
    }


class MarginEstimator:
    """Catalog-level margin report."""

    def estimate(self, rules: Iterable[ServiceRule]) -> dict[str, Any]:
        rules = list(rules)
        return {
            "services": [margin_breakdown(rule) for rule in rules],
            "averageProfitMargin": average_margin(rules),
        }
