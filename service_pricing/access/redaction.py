"""
Field Redactor — strips monetary fields from a response graph.

The walk is depth-first over mappings, sequences, pydantic models and
dataclasses. Models and dataclasses are first projected into a plain mapping
(computed fields included) so that derived values are filtered the same way
as stored ones.

Each call owns a fresh ``visited`` map of id to node. A container reached a
second time in the same walk is replaced by None, which bounds the walk on
cyclic graphs at the cost of cutting that edge.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Iterable, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

REDACTED_FIELDS: frozenset[str] = frozenset({
    "estimatedCost",
    "actualCost",
    "laborCost",
    "materialsCost",
    "totalCost",
    "cost",
    "price",
    "amount",
    "hourlyRate",
    "contractAmount",
    "subtotal",
    "tax",
    "total",
})


def project(node: Any) -> Any:
    """Shallow plain-mapping view of a model or dataclass; other values unchanged."""
    if isinstance(node, BaseModel):
        cls = type(node)
        projected: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            projected[field.alias or name] = getattr(node, name)
        for name, field in cls.model_computed_fields.items():
            projected[field.alias or name] = getattr(node, name)
        return projected
    if dataclasses.is_dataclass(node) and not isinstance(node, type):
        return {f.name: getattr(node, f.name) for f in dataclasses.fields(node)}
    return node


def _is_container(node: Any) -> bool:
    return isinstance(node, (Mapping, list, tuple, BaseModel)) or (
        dataclasses.is_dataclass(node) and not isinstance(node, type)
    )


class FieldRedactor:
    """Removes a fixed set of keys at every depth for one role."""

    def __init__(self, redacted_role: str = "worker", fields: Iterable[str] = REDACTED_FIELDS):
        self.redacted_role = redacted_role
        self.fields = frozenset(fields)

    def applies_to(self, role: Optional[str]) -> bool:
        return role == self.redacted_role

    def redact_for(self, role: Optional[str], payload: Any) -> Any:
        if not self.applies_to(role):
            return payload
        return self.redact(payload)

    def redact(self, payload: Any) -> Any:
        return self._walk(payload, {})

    def _walk(self, node: Any, visited: dict[int, Any]) -> Any:
        # nodes stay referenced until the walk ends so their ids stay unique
        if _is_container(node):
            if id(node) in visited:
                return None
            visited[id(node)] = node

        node = project(node)

        if isinstance(node, Mapping):
            return {
                key: self._walk(value, visited)
                for key, value in node.items()
                if key not in self.fields
            }
        if isinstance(node, (list, tuple)):
            return [self._walk(item, visited) for item in node]
        return node
