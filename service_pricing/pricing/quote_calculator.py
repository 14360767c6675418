"""
Quote Calculator — prices service lines against a catalog.

Order of operations for one line (the order is part of the contract):
  1. base price, replaced by the apartment-type override when one exists
  2. subtotal = base price × quantity
  3. clamp to minimum charge, then to maximum charge
  4. flat client discount
  5. bulk discount, when the already discounted total reaches the threshold
  6. discount = subtotal − total

Arithmetic runs on Decimal built from the float inputs so that stacked
percentage discounts land on exact cents-style values.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, Optional

from service_pricing.errors import NotFoundError
from service_pricing.models.enums import ApartmentType
from service_pricing.models.schemas import (
    AdditionalCost,
    ApartmentTypeOverride,
    Pricing,
    PricingCatalog,
    Quote,
    QuoteLine,
    QuoteLineError,
    QuoteLineRequest,
    ResolvedPricing,
    ServiceRule,
    Terms,
)

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def _dec(value: float | int | None) -> Decimal:
    return Decimal(str(value or 0))


# ── Apartment overrides ──────────────────────────────────


def find_apartment_override(
    pricing: Pricing, apartment_type: ApartmentType | str
) -> Optional[ApartmentTypeOverride]:
    """First override for ``apartment_type``, or None."""
    for override in pricing.apartment_type_pricing:
        if override.apartment_type == apartment_type:
            return override
    return None


def resolve_base_price(
    pricing: Pricing, apartment_type: ApartmentType | str
) -> tuple[float, list[AdditionalCost]]:
    override = find_apartment_override(pricing, apartment_type)
    if override is None:
        return pricing.base_price, []
    return override.price, list(override.additional_costs)


def calculated_pricing(rule: ServiceRule, apartment_type: ApartmentType | str) -> ResolvedPricing:
    """The rule's pricing block as seen for one apartment type."""
    base_price, additional_costs = resolve_base_price(rule.pricing, apartment_type)
    return ResolvedPricing(
        **rule.pricing.model_dump(exclude={"base_price"}),
        base_price=base_price,
        additional_costs=additional_costs,
    )


# ── Clamp & discounts ────────────────────────────────────


def clamp(total: Decimal, minimum: Optional[float], maximum: Optional[float]) -> Decimal:
    # Zero or missing bounds are treated as "not set".
    if minimum and total < _dec(minimum):
        total = _dec(minimum)
    if maximum and total > _dec(maximum):
        total = _dec(maximum)
    return total


def apply_flat_discount(total: Decimal, terms: Terms) -> Decimal:
    if terms.discount_percentage > 0:
        total = total * (1 - _dec(terms.discount_percentage) / _HUNDRED)
    return total


def apply_bulk_discount(total: Decimal, terms: Terms) -> Decimal:
    # Threshold is compared against the flat-discounted total.
    if (
        terms.bulk_discount_threshold > 0
        and total >= _dec(terms.bulk_discount_threshold)
        and terms.bulk_discount_percentage > 0
    ):
        total = total * (1 - _dec(terms.bulk_discount_percentage) / _HUNDRED)
    return total


# ── Calculator ───────────────────────────────────────────


class QuoteCalculator:
    """Pure pricing over catalog data; never writes to the catalog."""

    def calculate(
        self,
        rule: ServiceRule,
        quantity: float = 1,
        apartment_type: ApartmentType | str = ApartmentType.STANDARD,
        terms: Optional[Terms] = None,
    ) -> QuoteLine:
        terms = terms or Terms()

        base_price, additional_costs = resolve_base_price(rule.pricing, apartment_type)
        subtotal = _dec(base_price) * _dec(quantity)

        total = clamp(subtotal, rule.pricing.minimum_charge, rule.pricing.maximum_charge)
        total = apply_flat_discount(total, terms)
        total = apply_bulk_discount(total, terms)

        return QuoteLine(
            base_price=base_price,
            quantity=quantity,
            subtotal=float(subtotal),
            discount=float(subtotal - total),
            total=float(total),
            unit_type=rule.pricing.unit_type,
            additional_costs=additional_costs,
        )

    def price_service(
        self,
        catalog: PricingCatalog,
        service_id: str,
        quantity: float = 1,
        apartment_type: ApartmentType | str = ApartmentType.STANDARD,
    ) -> QuoteLine:
        """Price one service of ``catalog`` by id."""
        rule = catalog.get_service(service_id)
        if rule is None:
            raise NotFoundError("Service not found")
        line = self.calculate(rule, quantity, apartment_type, catalog.terms)
        line.service_id = service_id
        line.service = rule.model_copy(deep=True)
        return line

    def quote(
        self,
        catalog: Optional[PricingCatalog],
        lines: Iterable[QuoteLineRequest],
        apartment_type: ApartmentType | str = ApartmentType.STANDARD,
    ) -> Quote:
        """
        Price every requested line and total them.

        Unknown service ids become error lines worth 0 instead of failing
        the whole quote. A missing catalog yields an empty quote.
        """
        if catalog is None:
            return Quote()

        calculations: list[QuoteLine | QuoteLineError] = []
        total_amount = Decimal(0)
        for request in lines:
            try:
                line = self.price_service(catalog, request.service_id, request.quantity, apartment_type)
            except NotFoundError as e:
                logger.info(f"Quote line skipped for catalog {catalog.id}: {request.service_id} ({e.message})")
                calculations.append(QuoteLineError(service_id=request.service_id, error=e.message))
                continue
            calculations.append(line)
            total_amount += _dec(line.total)

        return Quote(
            calculations=calculations,
            total_amount=float(total_amount),
            company=catalog.company,
            terms=catalog.terms,
        )
