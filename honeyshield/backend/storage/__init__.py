"""storage/__init__.py"""
from __future__ import annotations

from .base import Store
from .database import Database
from .memory import MemoryStore
from .repository import SqliteStore

__all__ = ["Database", "MemoryStore", "SqliteStore", "Store", "open_store"]


def open_store(url: str) -> Store:
    """
    Build the Store for a DATABASE_URL.

        memory://                → MemoryStore
        sqlite:///data/app.db    → SqliteStore on data/app.db
        sqlite:///:memory:       → SqliteStore on an in-memory database
    """
    if url.startswith("memory://"):
        return MemoryStore()
    if url.startswith("sqlite:///"):
        db = Database(url[len("sqlite:///"):] or "data/honeyshield.db")
        db.init_schema()
        return SqliteStore(db)
    raise ValueError(f"Unsupported DATABASE_URL scheme: {url!r}")
