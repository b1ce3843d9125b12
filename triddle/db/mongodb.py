"""
MongoDB Connection Utility

MongoDB stores every Triddle document:
- users: accounts and roles
- forms: form definitions (fields are embedded)
- responses: submitted answers, one document per submission

One MongoClient is shared by the whole process. pymongo checks a pooled
connection out per operation, so handlers never hold a connection.
"""

import logging
from typing import Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from triddle.core.config import Settings, get_settings
from triddle.core.errors import DatabaseConnectionError
from triddle.core.logging import log_event

logger = logging.getLogger(__name__)

# Global client (connection pooling handled internally by pymongo)
_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def _new_client(settings: Settings) -> MongoClient:
    return MongoClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        tz_aware=True,
    )


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = _new_client(get_settings())
    return _client


def get_mongo_db() -> Database:
    """Get the configured database"""
    global _db
    if _db is None:
        _db = get_mongo_client()[get_settings().mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """
    Get a specific collection.
    Collections we use: users, forms, responses (see COLLECTIONS).
    """
    return get_mongo_db()[name]


def connect_db(settings: Settings) -> Database:
    """
    Connect and ping the server. Called once from the app lifespan.

    Raises:
        DatabaseConnectionError: server unreachable within the selection timeout
    """
    global _client, _db
    client = _new_client(settings)
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        raise DatabaseConnectionError(f"MongoDB connection failed: {e}") from e

    _client = client
    _db = client[settings.mongodb_db]
    log_event(logger, logging.INFO, "db.connected", "MongoDB connected: %s", settings.mongodb_db)
    return _db


def close_db() -> None:
    """Close the shared client; safe to call when never connected."""
    global _client, _db
    if _client is not None:
        _client.close()
        log_event(logger, logging.INFO, "db.closed", "MongoDB connection closed")
    _client = None
    _db = None


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        get_mongo_client().admin.command("ping")
        return True
    except PyMongoError as e:
        logger.warning(f"MongoDB ping failed: {e}")
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "forms": "forms",
    "responses": "responses",
}


def init_mongo_indexes(db: Optional[Database] = None) -> None:
    """
    Create indexes for uniqueness and query performance.
    Call this once during app startup.
    """
    db = db if db is not None else get_mongo_db()

    # Unique login identity
    db[COLLECTIONS["users"]].create_index("email", unique=True)

    # Public lookup by slug, owner listing
    db[COLLECTIONS["forms"]].create_index("slug", unique=True)
    db[COLLECTIONS["forms"]].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

    # Responses listed per form, newest first
    db[COLLECTIONS["responses"]].create_index([("form_id", ASCENDING), ("submitted_at", DESCENDING)])

    log_event(logger, logging.INFO, "db.indexes", "MongoDB indexes created")
