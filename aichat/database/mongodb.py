"""
MongoDB document store.

Holds the pooled MongoClient used by the document-backed chat store and by
content batch operations.
"""
from typing import Any, Callable, List, Optional, Sequence

from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from aichat.core.exceptions import ConfigurationError
from aichat.core.health import HealthStatus
from aichat.core.logging_config import get_logger

logger = get_logger(__name__)

CLIENT_OPTIONS = {
    "maxPoolSize": 10,
    "serverSelectionTimeoutMS": 5000,
    "socketTimeoutMS": 45000,
    # Stored datetimes come back as aware UTC values
    "tz_aware": True,
}


class MongoStore:
    """
    Thin wrapper over a pooled MongoClient bound to one database.

    The client connects lazily, so constructing a store never blocks.
    """

    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None, client=None):
        if uri is None and db_name is None:
            from aichat.core.config import get_settings
            settings = get_settings()
            uri, db_name = settings.mongodb_uri, settings.mongodb_db_name

        if not uri:
            raise ConfigurationError("Missing MONGODB_URI environment variable")
        if not db_name:
            raise ConfigurationError("Missing MONGODB_DB_NAME environment variable")

        self.db_name = db_name
        self.client = client or MongoClient(uri, **CLIENT_OPTIONS)
        logger.info(f"MongoDB client initialized for database '{db_name}'")

    def get_database(self) -> Database:
        return self.client[self.db_name]

    def collection(self, name: str) -> Collection:
        return self.get_database()[name]

    def batch_content_operations(
        self,
        operations: Sequence[Callable[[ClientSession], Any]]
    ) -> List[Any]:
        """
        Run several operations inside one multi-document transaction.

        Each operation receives the client session and must pass it to every
        collection call it makes. Requires a replica set.
        """
        session = self.client.start_session()
        try:
            return session.with_transaction(
                lambda s: [operation(s) for operation in operations]
            )
        except PyMongoError as e:
            logger.error(f"MongoDB batch operation failed: {e}")
            raise
        finally:
            session.end_session()

    def check_health(self) -> HealthStatus:
        try:
            self.client.admin.command("ping")
            return HealthStatus.ok()
        except PyMongoError as e:
            logger.error(f"MongoDB health check failed: {e}")
            return HealthStatus.failed(e)

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB connection closed")


_mongo_store: Optional[MongoStore] = None


def get_mongo_store() -> MongoStore:
    """Get or create the MongoDB store; raises ConfigurationError when unset."""
    global _mongo_store
    if _mongo_store is None:
        _mongo_store = MongoStore()
    return _mongo_store


def reset_mongo_store() -> None:
    global _mongo_store
    if _mongo_store is not None:
        _mongo_store.close()
    _mongo_store = None
