"""
Pricing catalog documents and the request/response shapes built around them.

Field names are snake_case in Python and camelCase on the wire and in the
document store. Dump with ``by_alias=True`` whenever a payload leaves the
process.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from service_pricing.pricing.margin_estimator import average_margin
from .enums import (
    ApartmentType,
    CompanyType,
    ContactRole,
    PaymentTerms,
    ServiceCategory,
    UnitType,
)


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        allow_inf_nan=False,
    )


# ── Company & contacts ───────────────────────────────────


class Company(CamelModel):
    name: str = Field(min_length=1)
    type: CompanyType


class Contact(CamelModel):
    name: str = Field(min_length=1)
    role: ContactRole
    email: Optional[str] = None
    phone: Optional[str] = None
    is_primary: bool = False

    @field_validator("email")
    @classmethod
    def _lowercase_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


# ── Service rules ────────────────────────────────────────


class AdditionalCost(CamelModel):
    """Display-only cost factor attached to an apartment override."""
    name: Optional[str] = None
    cost: Optional[float] = None
    description: Optional[str] = None


class ApartmentTypeOverride(CamelModel):
    apartment_type: ApartmentType
    price: float = Field(ge=0)
    additional_costs: list[AdditionalCost] = []


class Pricing(CamelModel):
    base_price: float = Field(ge=0)
    unit_type: UnitType
    minimum_charge: float = Field(default=0, ge=0)
    # Not checked against minimum_charge; the clamp applies min then max.
    maximum_charge: Optional[float] = Field(default=None, ge=0)
    # Duplicate apartment types are accepted; lookups take the first match.
    apartment_type_pricing: list[ApartmentTypeOverride] = []


class ResolvedPricing(Pricing):
    """Pricing as seen for one apartment type (see ``calculated_pricing``)."""
    additional_costs: list[AdditionalCost] = []


class Cost(CamelModel):
    """What delivering the service costs us."""
    labor_cost: float = Field(default=0, ge=0)
    material_cost: float = Field(default=0, ge=0)
    equipment_cost: float = Field(default=0, ge=0)
    overhead_percentage: float = Field(default=15, ge=0, le=100)


class Specifications(CamelModel):
    estimated_duration: float = Field(default=1, ge=0.5)  # hours
    workers_required: int = Field(default=1, ge=1)
    materials_included: bool = True
    equipment_included: bool = True
    notes: Optional[str] = None


class ServiceRule(CamelModel):
    """One billable service inside a catalog, addressed by its ``_id``."""
    id: str = Field(default_factory=new_id, alias="_id")
    category: ServiceCategory
    subcategory: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    pricing: Pricing
    cost: Cost = Field(default_factory=Cost)
    specifications: Specifications = Field(default_factory=Specifications)
    is_active: bool = True
    effective_from: datetime = Field(default_factory=utcnow)
    effective_to: Optional[datetime] = None


class PricedService(ServiceRule):
    """A service annotated with the pricing resolved for an apartment type."""
    calculated_pricing: ResolvedPricing


# ── Terms & catalog ──────────────────────────────────────


class Terms(CamelModel):
    payment_terms: PaymentTerms = PaymentTerms.NET_30
    discount_percentage: float = Field(default=0, ge=0, le=50)
    bulk_discount_threshold: float = Field(default=0, ge=0)
    bulk_discount_percentage: float = Field(default=0, ge=0, le=30)
    special_instructions: Optional[str] = None


class PricingCatalog(CamelModel):
    """
    The per-building, per-company set of service rules and contract terms.

    The catalog owns its services. They are kept in an ordered list for
    storage and responses and indexed by id so that lookups, updates and
    removals never depend on list position.
    """
    id: str = Field(default_factory=new_id, alias="_id")
    company: Company
    building: str = Field(min_length=1)
    services: list[ServiceRule] = []
    terms: Terms = Field(default_factory=Terms)
    contacts: list[Contact] = []
    created_by: str
    updated_by: Optional[str] = None
    is_active: bool = True
    revision: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    _service_index: dict[str, ServiceRule] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._service_index = {rule.id: rule for rule in self.services}

    @computed_field(alias="averageProfitMargin")  # type: ignore[misc]
    @property
    def average_profit_margin(self) -> float:
        return average_margin(self.services)

    # ── Service collection ───────────────────────────────

    def get_service(self, service_id: str) -> Optional[ServiceRule]:
        return self._service_index.get(service_id)

    def add_service(self, rule: ServiceRule) -> ServiceRule:
        if rule.id in self._service_index:
            raise ValueError(f"Service {rule.id} already exists in catalog {self.id}")
        self.services.append(rule)
        self._service_index[rule.id] = rule
        return rule

    def replace_service(self, rule: ServiceRule) -> ServiceRule:
        current = self._service_index.get(rule.id)
        if current is None:
            raise KeyError(rule.id)
        self.services[self.services.index(current)] = rule
        self._service_index[rule.id] = rule
        return rule

    def remove_service(self, service_id: str) -> ServiceRule:
        rule = self._service_index.pop(service_id)
        self.services.remove(rule)
        return rule

    def active_services(self) -> list[ServiceRule]:
        return [rule for rule in self.services if rule.is_active]

    def to_document(self) -> dict[str, Any]:
        """Storage shape: the wire shape without derived fields."""
        return self.model_dump(mode="json", by_alias=True, exclude={"average_profit_margin"})


# ── Quotes ───────────────────────────────────────────────


class QuoteLineRequest(CamelModel):
    service_id: str = Field(min_length=1)
    quantity: float = Field(default=1, gt=0)


class QuoteRequest(CamelModel):
    building_id: str = Field(min_length=1)
    services: list[QuoteLineRequest]
    apartment_type: ApartmentType = ApartmentType.STANDARD


class QuoteLine(CamelModel):
    """One priced line. ``additional_costs`` is shown but never summed."""
    base_price: float
    quantity: float
    subtotal: float
    discount: float
    total: float
    unit_type: UnitType
    additional_costs: list[AdditionalCost] = []
    service_id: Optional[str] = None
    service: Optional[ServiceRule] = None


class QuoteLineError(CamelModel):
    service_id: str
    error: str


class Quote(CamelModel):
    calculations: list[Union[QuoteLine, QuoteLineError]] = []
    total_amount: float = 0.0
    company: Optional[Company] = None
    terms: Optional[Terms] = None
