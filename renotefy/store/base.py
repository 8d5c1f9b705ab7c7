"""
Abstract storage collaborators.

The note repository only talks to these interfaces, so any backend that
can store JSON documents by id (and files by path) can sit underneath it.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


class _ServerTimestamp:
    """Sentinel written in place of a timestamp the store must assign."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class ServerClock:
    """Hands out UTC timestamps that never repeat or go backwards.

    Two writes inside the same microsecond (or a wall clock stepping back)
    still get strictly increasing values, so updatedAt ordering holds.
    """

    def __init__(self):
        self._last: Optional[datetime] = None

    def now(self) -> datetime:
        current = datetime.now(timezone.utc)
        if self._last is not None and current <= self._last:
            current = self._last + timedelta(microseconds=1)
        self._last = current
        return current

    def resolve(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of doc with every SERVER_TIMESTAMP replaced.

        All sentinels in one write share a single timestamp.
        """
        if not any(v is SERVER_TIMESTAMP for v in doc.values()):
            return dict(doc)
        stamp = self.now()
        return {k: (stamp if v is SERVER_TIMESTAMP else v) for k, v in doc.items()}


class DocumentStore(ABC):
    """
    Generic document database keyed by opaque string ids.

    Documents are plain dicts; the id travels in the "_id" key on reads
    and is never part of what callers write.
    """

    @abstractmethod
    async def create(self, collection: str, doc: Dict[str, Any]) -> str:
        """Insert a document and return its newly assigned id."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a document by id, or None if absent."""

    @abstractmethod
    async def update(
        self, collection: str, doc_id: str, partial: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Merge top-level fields into an existing document.

        Returns:
            The fields as written, with server sentinels resolved.
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document permanently."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        equals: Optional[Dict[str, Any]] = None,
        array_contains: Optional[Dict[str, Any]] = None,
        order_by_desc: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Find documents matching every filter.

        Args:
            collection: Collection name.
            equals: field -> value that must match exactly.
            array_contains: field -> value that must be an element of the
                array stored under field.
            order_by_desc: Field to sort on, newest/largest first.
        """


class ObjectStore(ABC):
    """Blob storage for note attachments."""

    @abstractmethod
    async def put(self, path: str, data: bytes) -> str:
        """Store bytes under a relative path and return a URL for them."""
