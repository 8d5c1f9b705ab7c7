"""
Process-wide database handle.

The app lifespan opens the SQLite file once; the auth router reads
accounts through get_database() and the note store is built on the same
handle.
"""

import logging
from typing import Optional

from renotefy.config import get_settings
from renotefy.sqlite_db import SQLiteDatabase

logger = logging.getLogger(__name__)

_database: Optional[SQLiteDatabase] = None


async def connect_db(db_path: Optional[str] = None) -> SQLiteDatabase:
    """Open (creating if needed) the configured database file.

    Args:
        db_path: Use this file instead of settings.sqlite_db_path.
    """
    global _database

    path = db_path or str(get_settings().sqlite_db_path)
    _database = SQLiteDatabase(path)
    await _database.connect()
    return _database


async def close_db() -> None:
    global _database
    if _database is not None:
        await _database.close()
        _database = None


def get_database() -> SQLiteDatabase:
    """
    Raises:
        RuntimeError: If connect_db() hasn't been called yet.
    """
    if _database is None:
        raise RuntimeError("Database not initialized. Call connect_db() first.")
    return _database
