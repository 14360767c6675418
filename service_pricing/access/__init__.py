"""Access — caller role tiers and the financial-field redactor."""

from service_pricing.access.gate import Caller, has_permission, require_role, role_tier
from service_pricing.access.redaction import REDACTED_FIELDS, FieldRedactor

__all__ = [
    "Caller",
    "has_permission",
    "require_role",
    "role_tier",
    "REDACTED_FIELDS",
    "FieldRedactor",
]
