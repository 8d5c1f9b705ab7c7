"""
Document collections on top of a single SQLite file.

Each collection (users, notes) is a table of JSON documents keyed by a
generated id. Filters use a small MongoDB-flavoured dialect, just enough
for the note store and the auth router:

    await db.notes.find({"userId": uid}, sort=("updatedAt", -1))
    await db.notes.find({"sharedWith": "bob@example.com"})  # array member
    await db.users.find_one({"email": "alice@example.com"})
    await db.notes.update_one({"_id": note_id}, {"$set": {"title": "x"}})

Table layout:
  - _id  TEXT PRIMARY KEY
  - data TEXT (the document without its _id, as JSON)
"""

import json
import logging
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiosqlite

logger = logging.getLogger(__name__)

# Document keys that hold datetimes; stored as ISO strings
DATE_FIELDS = ("createdAt", "updatedAt", "lastLoginAt")

_FIELD_RE = re.compile(r"^[A-Za-z0-9_]+$")


def new_object_id() -> str:
    """24 hex characters, the shape clients expect from document ids."""
    return uuid.uuid4().hex[:24]


# ============================================================
# Encoding
# ============================================================

def _to_json(value: Any) -> Any:
    """Prepare a value for JSON storage.

    Datetimes always carry microseconds so ISO strings with the same
    offset sort chronologically.
    """
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    return value


def _encode(doc: Dict[str, Any]) -> str:
    return json.dumps(_to_json(doc))


def _decode(doc_id: str, data: str) -> Dict[str, Any]:
    doc = json.loads(data)
    for key in DATE_FIELDS:
        if isinstance(doc.get(key), str):
            try:
                doc[key] = datetime.fromisoformat(doc[key])
            except ValueError:
                logger.warning(f"Unparsable {key} on document {doc_id}: {doc[key]!r}")
    doc["_id"] = doc_id
    return doc


# ============================================================
# Filters → SQL
# ============================================================

def _field(name: str) -> str:
    if not _FIELD_RE.match(name):
        raise ValueError(f"Invalid field name: {name!r}")
    return name


def _where(filters: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
    """Translate a filter dict into a WHERE clause and its parameters.

    Supported per field:
      - "_id": exact id match
      - None: field missing or null
      - bool / number: exact match on the stored scalar
      - str: exact match, or membership when the field holds an array
      - {"$ne": value}: field differs from a scalar (missing counts)

    Raises:
        ValueError: On unknown operators or unsafe field names.
    """
    if not filters:
        return "1=1", []

    clauses: List[str] = []
    params: List[Any] = []
    for key, value in filters.items():
        if key == "_id":
            clauses.append("_id = ?")
            params.append(str(value))
            continue

        path = f"'$.{_field(key)}'"
        if isinstance(value, dict):
            unknown = set(value) - {"$ne"}
            if unknown:
                raise ValueError(f"Unsupported query operator: {', '.join(sorted(unknown))}")
            clauses.append(f"json_extract(data, {path}) IS NOT ?")
            params.append(_param(value["$ne"]))
        elif value is None:
            clauses.append(f"json_extract(data, {path}) IS NULL")
        elif isinstance(value, str):
            # json_each yields a scalar itself, or each element of an array
            clauses.append(
                f"EXISTS (SELECT 1 FROM json_each(data, {path}) WHERE json_each.value = ?)"
            )
            params.append(value)
        else:
            clauses.append(f"json_extract(data, {path}) = ?")
            params.append(_param(value))

    return " AND ".join(clauses), params


def _param(value: Any) -> Any:
    # json_extract reports JSON booleans as 1 / 0
    if isinstance(value, bool):
        return int(value)
    return _to_json(value)


def _order_by(sort: Optional[Tuple[str, int]]) -> str:
    if not sort:
        return ""
    name, direction = sort
    return f"ORDER BY json_extract(data, '$.{_field(name)}') {'DESC' if direction < 0 else 'ASC'}"


# ============================================================
# Collections
# ============================================================

class UpdateResult:
    def __init__(self, matched_count: int):
        self.matched_count = matched_count


class SQLiteCollection:
    """One table of JSON documents."""

    def __init__(self, db: "SQLiteDatabase", name: str):
        self._db = db
        self.name = _field(name)
        self._ready = False

    async def _conn(self) -> aiosqlite.Connection:
        conn = self._db.connection
        if not self._ready:
            await conn.execute(
                f"CREATE TABLE IF NOT EXISTS [{self.name}] "
                "(_id TEXT PRIMARY KEY, data TEXT NOT NULL)"
            )
            await conn.commit()
            self._ready = True
        return conn

    async def insert_one(self, document: Dict[str, Any]) -> str:
        """Insert a document and return its id (generated unless given)."""
        doc = dict(document)
        doc_id = str(doc.pop("_id", None) or new_object_id())
        conn = await self._conn()
        await conn.execute(
            f"INSERT INTO [{self.name}] (_id, data) VALUES (?, ?)",
            (doc_id, _encode(doc)),
        )
        await conn.commit()
        return doc_id

    async def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        sort: Optional[Tuple[str, int]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """All matching documents; sort is (field, 1 | -1)."""
        where, params = _where(filters)
        sql = f"SELECT _id, data FROM [{self.name}] WHERE {where} {_order_by(sort)}"
        if limit:
            sql += f" LIMIT {int(limit)}"

        conn = await self._conn()
        async with conn.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        return [_decode(row[0], row[1]) for row in rows]

    async def find_one(self, filters: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        docs = await self.find(filters, limit=1)
        return docs[0] if docs else None

    def _first_match(self, filters: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
        where, params = _where(filters)
        return f"_id = (SELECT _id FROM [{self.name}] WHERE {where} LIMIT 1)", params

    async def update_one(self, filters: Dict[str, Any], update: Dict[str, Any]) -> UpdateResult:
        """Merge top-level fields from {"$set": {...}} into the first match.

        The merge is a single UPDATE, so concurrent writes to different
        fields of one document never undo each other.
        """
        unknown = set(update) - {"$set"}
        if unknown:
            raise ValueError(f"Unsupported update operator: {', '.join(sorted(unknown))}")

        fields = update.get("$set", {})
        if not fields:
            return UpdateResult(1 if await self.find_one(filters) else 0)

        target, params = self._first_match(filters)

        paths: List[Any] = []
        for key, value in fields.items():
            paths += [f"$.{_field(key)}", json.dumps(_to_json(value))]
        assignments = ", ".join("?, json(?)" for _ in fields)

        conn = await self._conn()
        cursor = await conn.execute(
            f"UPDATE [{self.name}] SET data = json_set(data, {assignments}) WHERE {target}",
            (*paths, *params),
        )
        await conn.commit()
        return UpdateResult(cursor.rowcount)

    async def delete_one(self, filters: Dict[str, Any]) -> int:
        """Delete the first match; returns how many documents were removed."""
        target, params = self._first_match(filters)
        conn = await self._conn()
        cursor = await conn.execute(f"DELETE FROM [{self.name}] WHERE {target}", params)
        await conn.commit()
        return cursor.rowcount

    async def count_documents(self, filters: Optional[Dict[str, Any]] = None) -> int:
        where, params = _where(filters)
        conn = await self._conn()
        async with conn.execute(f"SELECT COUNT(*) FROM [{self.name}] WHERE {where}", params) as cursor:
            row = await cursor.fetchone()
        return row[0]


# ============================================================
# Database
# ============================================================

class SQLiteDatabase:
    """
    A SQLite file holding every collection, shared over one connection.

    Collections are reached as attributes or items: db.users, db["notes"].
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None
        self._collections: Dict[str, SQLiteCollection] = {}

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn

    async def connect(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self.db_path, timeout=30.0)
        # WAL lets readers proceed while a write is committing
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA busy_timeout=5000")
        logger.info(f"SQLite database connected: {self.db_path}")

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite database closed")

    async def ping(self) -> bool:
        async with self.connection.execute("SELECT 1") as cursor:
            await cursor.fetchone()
        return True

    def __getattr__(self, name: str) -> SQLiteCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name: str) -> SQLiteCollection:
        if name not in self._collections:
            self._collections[name] = SQLiteCollection(self, name)
        return self._collections[name]
