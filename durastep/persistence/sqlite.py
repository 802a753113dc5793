"""SQLite implementation of the snapshot store."""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional

from ..constants import DEFAULT_TABLE_NAME
from ..contracts import RunStatus, WorkflowSnapshot
from .models import (
    MUTABLE_COLUMNS,
    SNAPSHOT_COLUMNS,
    isoformat,
    row_to_snapshot,
    snapshot_to_row,
    status_value,
)
from .repository import SnapshotStore


class SQLiteSnapshotStore(SnapshotStore):
    """Persist run snapshots using SQLite."""

    def __init__(self, db_path: str | Path, table_name: str = DEFAULT_TABLE_NAME):
        self.db_path = str(db_path)
        self.table_name = table_name
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        # one connection is shared by worker threads
        self._conn_lock = threading.Lock()
        self._init_lock = asyncio.Lock()
        self._initialized = False

    # ------------------------------------------------------------------
    # Schema management
    async def init(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await asyncio.to_thread(self._ensure_schema)
            self._initialized = True

    def _ensure_schema(self) -> None:
        with self._conn_lock, self._conn:
            self._conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table_name} (
                    run_id TEXT PRIMARY KEY,
                    workflow_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    execution_path TEXT,
                    step_results TEXT,
                    state TEXT,
                    input_data TEXT,
                    result TEXT,
                    error TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            self._conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self.table_name}_workflow_id "
                f"ON {self.table_name}(workflow_id)"
            )
            self._conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self.table_name}_status "
                f"ON {self.table_name}(status)"
            )

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        with self._conn_lock, self._conn:
            self._conn.execute(query, params)

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        with self._conn_lock:
            return self._conn.execute(query, params).fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        with self._conn_lock:
            return self._conn.execute(query, params).fetchall()

    def _select(self, where: str = "") -> str:
        return (
            f"SELECT {', '.join(SNAPSHOT_COLUMNS)} FROM {self.table_name} {where} "
            "ORDER BY updated_at DESC, rowid DESC"
        )

    # ------------------------------------------------------------------
    # Store API
    async def save_snapshot(self, snapshot: WorkflowSnapshot) -> None:
        await self.init()
        row = snapshot_to_row(snapshot)
        row["created_at"] = isoformat(row["created_at"])
        row["updated_at"] = isoformat(row["updated_at"])
        placeholders = ", ".join("?" for _ in SNAPSHOT_COLUMNS)
        updates = ", ".join(f"{col} = excluded.{col}" for col in MUTABLE_COLUMNS)
        await asyncio.to_thread(
            self._execute,
            f"""
            INSERT INTO {self.table_name} ({', '.join(SNAPSHOT_COLUMNS)})
            VALUES ({placeholders})
            ON CONFLICT(run_id) DO UPDATE SET {updates}
            """,
            *(row[col] for col in SNAPSHOT_COLUMNS),
        )

    async def load_snapshot(self, run_id: str) -> Optional[WorkflowSnapshot]:
        await self.init()
        row = await asyncio.to_thread(
            self._fetchone,
            f"SELECT {', '.join(SNAPSHOT_COLUMNS)} FROM {self.table_name} WHERE run_id = ?",
            run_id,
        )
        if not row:
            return None
        return row_to_snapshot(row)

    async def list_runs(self, workflow_id: Optional[str] = None) -> list[WorkflowSnapshot]:
        await self.init()
        if workflow_id is None:
            rows = await asyncio.to_thread(self._fetchall, self._select())
        else:
            rows = await asyncio.to_thread(
                self._fetchall, self._select("WHERE workflow_id = ?"), workflow_id
            )
        return [row_to_snapshot(r) for r in rows]

    async def get_runs_by_status(
        self, status: RunStatus | str, workflow_id: Optional[str] = None
    ) -> list[WorkflowSnapshot]:
        await self.init()
        if workflow_id is None:
            rows = await asyncio.to_thread(
                self._fetchall, self._select("WHERE status = ?"), status_value(status)
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                self._select("WHERE status = ? AND workflow_id = ?"),
                status_value(status),
                workflow_id,
            )
        return [row_to_snapshot(r) for r in rows]

    async def delete_run(self, run_id: str) -> None:
        await self.init()
        await asyncio.to_thread(
            self._execute, f"DELETE FROM {self.table_name} WHERE run_id = ?", run_id
        )

    async def close(self) -> None:
        with self._conn_lock:
            self._conn.close()
