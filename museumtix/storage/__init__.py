"""Storage backends behind one interface, selected by ``STORAGE_BACKEND``."""

import logging

from pymongo.errors import PyMongoError

from museumtix.config import Settings
from museumtix.storage.interfaces import IStorage

logger = logging.getLogger(__name__)


def create_storage(settings: Settings) -> IStorage:
    """Build and initialize the configured backend.

    An unreachable document database degrades to in-memory storage so the
    service still starts.
    """
    from museumtix.storage.memory import MemStorage
    
    backend = settings.STORAGE_BACKEND.lower()
    
    if backend == "sql":
        from museumtix.storage.sql import DatabaseStorage
        storage = DatabaseStorage.from_url(settings.sqlalchemy_url, echo=settings.DEBUG)
        storage.initialize_database(seed=settings.SEED_DATA)
        logger.info("Using relational storage")
        return storage
    
    if backend == "mongo":
        from museumtix.storage.adapter import StorageAdapter
        from museumtix.storage.mongo import MongoStorage, connect_to_database
        try:
            client = connect_to_database(
                settings.MONGODB_URI, settings.MONGODB_DATABASE, settings.MONGODB_TIMEOUT_MS
            )
        except PyMongoError as e:
            logger.error("Failed to connect to MongoDB: %s", e)
            logger.warning("Falling back to in-memory storage")
            return MemStorage(seed=settings.SEED_DATA)
        
        storage = StorageAdapter(MongoStorage(client[settings.MONGODB_DATABASE], client=client))
        if settings.SEED_DATA:
            storage.initialize_database()
        else:
            storage.backend.ensure_indexes()
        logger.info("Using MongoDB storage")
        return storage
    
    if backend != "memory":
        raise ValueError(f"Unknown storage backend: {settings.STORAGE_BACKEND}")
    
    logger.info("Using in-memory storage")
    return MemStorage(seed=settings.SEED_DATA)


__all__ = ["IStorage", "create_storage"]
