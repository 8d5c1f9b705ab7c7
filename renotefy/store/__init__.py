"""
Storage adapters package.
Document and object storage behind small abstract interfaces.
"""

from renotefy.store.base import (
    SERVER_TIMESTAMP,
    DocumentStore,
    ObjectStore,
    ServerClock,
)
from renotefy.store.local_objects import LocalObjectStore
from renotefy.store.sqlite_store import SQLiteDocumentStore

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentStore",
    "ObjectStore",
    "ServerClock",
    "LocalObjectStore",
    "SQLiteDocumentStore",
]
