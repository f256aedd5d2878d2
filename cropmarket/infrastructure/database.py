"""
Infrastructure layer: database handle.

The handle owns the store adapters and the underlying client. It is created
once at application startup, passed to whoever needs the stores, and closed
at shutdown.
"""
import logging
from typing import Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from cropmarket.config import Settings
from cropmarket.infrastructure.memory_store import InMemoryCropStore, InMemoryInterestStore
from cropmarket.infrastructure.mongo_store import MongoCropStore, MongoInterestStore
from cropmarket.infrastructure.stores import CropStore, InterestStore, StoreError

logger = logging.getLogger(__name__)


class Database:
    """Connected pair of crop and interest stores."""

    def __init__(
        self,
        crops: CropStore,
        interests: InterestStore,
        client: Optional[MongoClient] = None,
    ):
        self.crops = crops
        self.interests = interests
        self.client = client

    @classmethod
    def in_memory(cls) -> "Database":
        return cls(crops=InMemoryCropStore(), interests=InMemoryInterestStore())

    @classmethod
    def connect(cls, config: Settings) -> "Database":
        """
        Open the storage backend selected by configuration.

        Args:
            config: Application settings

        Returns:
            Database handle

        Raises:
            ValueError: If the configured backend is unknown
            StoreError: If MongoDB cannot be reached
        """
        backend = config.storage_backend.lower()

        if backend == "memory":
            logger.info("Using in-memory storage")
            return cls.in_memory()

        if backend != "mongo":
            raise ValueError(f"Unknown storage backend: {config.storage_backend}")

        client = MongoClient(
            config.mongo_uri,
            tz_aware=True,
            serverSelectionTimeoutMS=config.mongo_timeout_ms,
        )
        try:
            client.admin.command("ping")
            db = client[config.mongo_db_name]
            interests = MongoInterestStore(db[config.interests_collection])
            interests.ensure_indexes()
        except (PyMongoError, StoreError) as e:
            client.close()
            raise StoreError(f"Could not connect to MongoDB: {e}") from e

        logger.info(f"MongoDB connected (database={config.mongo_db_name})")
        return cls(
            crops=MongoCropStore(db[config.crops_collection]),
            interests=interests,
            client=client,
        )

    def close(self) -> None:
        """Release the client connection, if any."""
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.info("MongoDB connection closed")
