"""
DocumentStore backed by the SQLite collection layer.
"""

import logging
from typing import Any, Dict, List, Optional

from renotefy.sqlite_db import SQLiteDatabase
from renotefy.store.base import DocumentStore, ServerClock

logger = logging.getLogger(__name__)


class SQLiteDocumentStore(DocumentStore):
    """
    Adapts SQLiteDatabase collections to the DocumentStore interface.

    Array-membership filters rely on the MongoDB rule the SQLite layer
    implements: equality against an array field matches any element.
    """

    def __init__(self, db: SQLiteDatabase, clock: Optional[ServerClock] = None):
        self._db = db
        self._clock = clock or ServerClock()

    async def create(self, collection: str, doc: Dict[str, Any]) -> str:
        resolved = self._clock.resolve(doc)
        resolved.pop("_id", None)
        return await self._db[collection].insert_one(resolved)

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return await self._db[collection].find_one({"_id": doc_id})

    async def update(
        self, collection: str, doc_id: str, partial: Dict[str, Any]
    ) -> Dict[str, Any]:
        resolved = self._clock.resolve(partial)
        resolved.pop("_id", None)
        result = await self._db[collection].update_one(
            {"_id": doc_id}, {"$set": resolved}
        )
        if result.matched_count == 0:
            # Callers check existence first; a miss here means the
            # document vanished between the read and the write.
            raise LookupError(f"{collection}/{doc_id} does not exist")
        return resolved

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._db[collection].delete_one({"_id": doc_id})

    async def query(
        self,
        collection: str,
        equals: Optional[Dict[str, Any]] = None,
        array_contains: Optional[Dict[str, Any]] = None,
        order_by_desc: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        filters: Dict[str, Any] = dict(equals or {})
        for field, value in (array_contains or {}).items():
            if field in filters:
                raise ValueError(f"Conflicting filters on {field}")
            filters[field] = value

        sort = (order_by_desc, -1) if order_by_desc else None
        return await self._db[collection].find(filters, sort=sort)
