"""
Database module - MongoDB connection.
"""
from triddle.db.mongodb import (
    close_db,
    connect_db,
    get_collection,
    get_mongo_db,
    init_mongo_indexes,
    test_mongo_connection,
)

__all__ = [
    "close_db",
    "connect_db",
    "get_collection",
    "get_mongo_db",
    "init_mongo_indexes",
    "test_mongo_connection",
]
