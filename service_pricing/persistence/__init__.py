"""Persistence — MongoClient, catalog repositories."""

from service_pricing.persistence.mongo_client import MongoClient
from service_pricing.persistence.catalog_repository import (
    CatalogQuery,
    CatalogRepository,
    InMemoryCatalogRepository,
    MongoCatalogRepository,
    get_catalog_repository,
)

__all__ = [
    "MongoClient",
    "CatalogQuery",
    "CatalogRepository",
    "InMemoryCatalogRepository",
    "MongoCatalogRepository",
    "get_catalog_repository",
]
