"""
Catalog Repository — persistence of pricing catalog documents.

Documents are stored in their camelCase wire shape and keyed by a string
``_id``. Writes are conditional on the ``revision`` the caller read, so two
concurrent edits of one catalog cannot silently overwrite each other.

Two backends:
  * InMemoryCatalogRepository — process-local dict, deep-copied on every
    read and write (default; tests and local runs)
  * MongoCatalogRepository    — pymongo collection
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from copy import deepcopy
from functools import lru_cache
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from service_pricing.config import get_settings
from service_pricing.errors import InternalError
from service_pricing.persistence.mongo_client import MongoClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogQuery(BaseModel):
    """List filters; None means "any"."""
    building: Optional[str] = None
    company_type: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None

    def to_mongo(self) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if self.building:
            query["building"] = self.building
        if self.company_type:
            query["company.type"] = self.company_type
        if self.category:
            query["services.category"] = self.category
        if self.is_active is not None:
            query["isActive"] = self.is_active
        return query

    def matches(self, doc: dict[str, Any]) -> bool:
        if self.building and doc.get("building") != self.building:
            return False
        if self.company_type and doc.get("company", {}).get("type") != self.company_type:
            return False
        if self.category and not any(
            s.get("category") == self.category for s in doc.get("services", [])
        ):
            return False
        if self.is_active is not None and doc.get("isActive") != self.is_active:
            return False
        return True


class CatalogRepository(ABC):

    @abstractmethod
    def find(self, query: CatalogQuery) -> list[dict[str, Any]]:
        """Matching catalogs, newest first."""

    @abstractmethod
    def get(self, catalog_id: str) -> Optional[dict[str, Any]]:
        ...

    @abstractmethod
    def find_active_for_building(self, building: str) -> list[dict[str, Any]]:
        """Active catalogs of a building, oldest first."""

    @abstractmethod
    def insert(self, doc: dict[str, Any]) -> None:
        ...

    @abstractmethod
    def replace(self, doc: dict[str, Any], expected_revision: int) -> bool:
        """Store ``doc`` if the stored revision still equals ``expected_revision``."""

    @abstractmethod
    def delete(self, catalog_id: str) -> bool:
        ...


# ── In-memory ────────────────────────────────────────────


class InMemoryCatalogRepository(CatalogRepository):

    def __init__(self):
        self._memory_store: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def find(self, query: CatalogQuery) -> list[dict[str, Any]]:
        with self._lock:
            docs = [deepcopy(d) for d in self._memory_store.values() if query.matches(d)]
        return sorted(docs, key=lambda d: d.get("createdAt", ""), reverse=True)

    def get(self, catalog_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            doc = self._memory_store.get(catalog_id)
            return deepcopy(doc) if doc is not None else None

    def find_active_for_building(self, building: str) -> list[dict[str, Any]]:
        with self._lock:
            return [
                deepcopy(d) for d in self._memory_store.values()
                if d.get("building") == building and d.get("isActive")
            ]

    def insert(self, doc: dict[str, Any]) -> None:
        with self._lock:
            if doc["_id"] in self._memory_store:
                logger.error(f"Duplicate catalog id on insert: {doc['_id']}")
                raise InternalError()
            self._memory_store[doc["_id"]] = deepcopy(doc)

    def replace(self, doc: dict[str, Any], expected_revision: int) -> bool:
        with self._lock:
            current = self._memory_store.get(doc["_id"])
            if current is None or current.get("revision") != expected_revision:
                return False
            self._memory_store[doc["_id"]] = deepcopy(doc)
            return True

    def delete(self, catalog_id: str) -> bool:
        with self._lock:
            return self._memory_store.pop(catalog_id, None) is not None


# ── MongoDB ──────────────────────────────────────────────


class MongoCatalogRepository(CatalogRepository):

    def __init__(self, client: Optional[MongoClient] = None, collection: Optional[str] = None):
        self.client = client or MongoClient()
        self.collection_name = collection or get_settings().catalog_collection

    @property
    def collection(self) -> Any:
        return self.client.get_collection(self.collection_name)

    def _run(self, action: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except PyMongoError as e:
            logger.exception(f"MongoDB {action} failed on {self.collection_name}: {e}")
            raise InternalError() from e

    def find(self, query: CatalogQuery) -> list[dict[str, Any]]:
        return self._run("find", lambda: list(
            self.collection.find(query.to_mongo()).sort("createdAt", DESCENDING)
        ))

    def get(self, catalog_id: str) -> Optional[dict[str, Any]]:
        return self._run("get", lambda: self.collection.find_one({"_id": catalog_id}))

    def find_active_for_building(self, building: str) -> list[dict[str, Any]]:
        return self._run("find", lambda: list(
            self.collection.find({"building": building, "isActive": True}).sort("createdAt", ASCENDING)
        ))

    def insert(self, doc: dict[str, Any]) -> None:
        self._run("insert", lambda: self.collection.insert_one(dict(doc)))

    def replace(self, doc: dict[str, Any], expected_revision: int) -> bool:
        result = self._run("replace", lambda: self.collection.replace_one(
            {"_id": doc["_id"], "revision": expected_revision}, doc
        ))
        return result.matched_count == 1

    def delete(self, catalog_id: str) -> bool:
        result = self._run("delete", lambda: self.collection.delete_one({"_id": catalog_id}))
        return result.deleted_count == 1


@lru_cache()
def get_catalog_repository() -> CatalogRepository:
    """Return the configured repository (singleton)."""
    backend = get_settings().storage_backend
    if backend == "mongo":
        return MongoCatalogRepository()
    if backend != "memory":
        raise ValueError(f"Unknown storage backend: {backend}")
    return InMemoryCatalogRepository()
