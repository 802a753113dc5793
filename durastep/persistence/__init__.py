"""Persistence layer for workflow run snapshots."""

from __future__ import annotations

import os
from typing import Optional

from ..config import DurastepConfig, load_config
from .inmemory import InMemorySnapshotStore
from .postgres import PostgresSnapshotStore
from .repository import SnapshotStore
from .sqlite import SQLiteSnapshotStore

_store_instance: SnapshotStore | None = None

_SQLALCHEMY_ASYNC_DRIVERS = ("+aiosqlite", "+asyncpg", "+psycopg", "+aiomysql", "+asyncmy")


def get_store(
    database_url: Optional[str] = None, config: Optional[DurastepConfig] = None
) -> SnapshotStore:
    """Factory function to obtain a snapshot store.

    The backend is selected based on ``database_url`` which can be provided
    explicitly, via environment variable ``DURASTEP_DATABASE_URL`` or
    ``DATABASE_URL``, or from loaded configuration. When no database is
    configured, an in-memory store is returned. URLs naming an async
    SQLAlchemy driver (``sqlite+aiosqlite://``, ``postgresql+asyncpg://``)
    use the SQLModel-backed store.
    """

    global _store_instance
    if _store_instance is not None and database_url is None and config is None:
        return _store_instance

    config = config or load_config()
    database_url = (
        database_url
        or os.getenv("DURASTEP_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or config.database_url
    )

    if not database_url:
        _store_instance = InMemorySnapshotStore()
        return _store_instance

    scheme = database_url.split("://", 1)[0]
    if any(scheme.endswith(driver) for driver in _SQLALCHEMY_ASYNC_DRIVERS):
        from ..db import SQLModelSnapshotStore

        _store_instance = SQLModelSnapshotStore(database_url)
    elif database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _store_instance = SQLiteSnapshotStore(path, table_name=config.table_name)
    elif database_url.startswith("postgres://") or database_url.startswith(
        "postgresql://"
    ):
        _store_instance = PostgresSnapshotStore(database_url, table_name=config.table_name)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _store_instance


__all__ = [
    "SnapshotStore",
    "InMemorySnapshotStore",
    "SQLiteSnapshotStore",
    "PostgresSnapshotStore",
    "get_store",
]
