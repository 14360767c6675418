"""
Access Gate — resolves the caller handed in by the auth layer and enforces
the role tier a route needs before its handler runs.

Tiers, lowest first: worker < supervisor < manager < admin < superuser.
Any role string outside the tier table ranks below worker.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import Depends, Request
from pydantic import BaseModel

from service_pricing.config import get_settings
from service_pricing.errors import AuthorizationError
from service_pricing.models.enums import ROLE_TIERS

logger = logging.getLogger(__name__)


class Caller(BaseModel):
    user_id: str
    role: str

    @property
    def tier(self) -> int:
        return role_tier(self.role)


def role_tier(role: Optional[str]) -> int:
    return ROLE_TIERS.get(role or "", 0)


def has_permission(role: Optional[str], required_role: str) -> bool:
    tier = role_tier(role)
    return tier > 0 and tier >= role_tier(required_role)


def resolve_caller(request: Request) -> Optional[Caller]:
    """Read the caller from request headers; None when unidentified."""
    settings = get_settings()
    user_id = request.headers.get(settings.user_header, "").strip()
    role = request.headers.get(settings.role_header, "").strip()
    if not user_id or not role:
        return None
    return Caller(user_id=user_id, role=role)


def get_caller(request: Request) -> Caller:
    caller = resolve_caller(request)
    if caller is None:
        raise AuthorizationError("You are not logged in", status_code=401)
    return caller


def require_role(min_role: str) -> Callable[..., Caller]:
    """Dependency factory: the caller, if their tier is at least ``min_role``."""

    def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        if not has_permission(caller.role, min_role):
            logger.warning(f"Denied {caller.user_id} ({caller.role}): requires {min_role}")
            raise AuthorizationError(required_role=min_role, role=caller.role)
        return caller

    return dependency
