"""
Mongo Client — raw database connection management.
The connection is opened lazily on first use.
"""

from __future__ import annotations

import logging
from typing import Any

from pymongo import MongoClient as PyMongoClient
from pymongo.errors import PyMongoError

from service_pricing.config import get_settings
from service_pricing.errors import InternalError

logger = logging.getLogger(__name__)


class MongoClient:
    """Thin wrapper around pymongo."""

    def __init__(self, uri: str | None = None, database: str | None = None):
        settings = get_settings()
        self.uri = uri or settings.mongodb_uri
        self.database_name = database or settings.mongodb_database
        self._client: Any = None
        self._db: Any = None

    def connect(self) -> None:
        """Establish the MongoDB connection."""
        try:
            self._client = PyMongoClient(self.uri)
            self._db = self._client[self.database_name]
        except PyMongoError as e:
            logger.exception(f"MongoDB connection failed: {e}")
            raise InternalError() from e
        logger.info(f"Connected to MongoDB: {self.database_name}")

    def get_database(self) -> Any:
        """Return the database handle."""
        if self._db is None:
            self.connect()
        return self._db

    def get_collection(self, name: str) -> Any:
        return self.get_database()[name]

    def close(self) -> None:
        """Close the connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("MongoDB connection closed")
