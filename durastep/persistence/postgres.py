"""PostgreSQL implementation of the snapshot store."""

from __future__ import annotations

import asyncio
import zlib
from typing import Optional

import asyncpg

from ..constants import DEFAULT_TABLE_NAME
from ..contracts import RunStatus, WorkflowSnapshot
from .models import (
    MUTABLE_COLUMNS,
    SNAPSHOT_COLUMNS,
    row_to_snapshot,
    snapshot_to_row,
    status_value,
)
from .repository import SnapshotStore


class PostgresSnapshotStore(SnapshotStore):
    """Persist run snapshots using PostgreSQL."""

    def __init__(self, dsn: str, table_name: str = DEFAULT_TABLE_NAME):
        self._dsn = dsn
        self.table_name = table_name
        self._pool: Optional[asyncpg.Pool] = None
        self._init_lock = asyncio.Lock()
        self._initialized = False

    async def init(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            if self._pool is None:
                self._pool = await asyncpg.create_pool(self._dsn)
            async with self._pool.acquire() as conn:
                await self._ensure_schema(conn)
            self._initialized = True

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        # CREATE ... IF NOT EXISTS can still collide across processes
        lock_key = zlib.crc32(self.table_name.encode())
        async with conn.transaction():
            await conn.execute("SELECT pg_advisory_xact_lock($1)", lock_key)
            await conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table_name} (
                    run_id TEXT PRIMARY KEY,
                    workflow_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    execution_path JSONB,
                    step_results JSONB,
                    state JSONB,
                    input_data JSONB,
                    result JSONB,
                    error TEXT,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL
                )
                """
            )
            await conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self.table_name}_workflow_id "
                f"ON {self.table_name}(workflow_id)"
            )
            await conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{self.table_name}_status "
                f"ON {self.table_name}(status)"
            )

    def _select(self, where: str = "") -> str:
        return (
            f"SELECT {', '.join(SNAPSHOT_COLUMNS)} FROM {self.table_name} {where} "
            "ORDER BY updated_at DESC"
        )

    # ------------------------------------------------------------------
    async def save_snapshot(self, snapshot: WorkflowSnapshot) -> None:
        await self.init()
        row = snapshot_to_row(snapshot)
        placeholders = ", ".join(f"${i}" for i in range(1, len(SNAPSHOT_COLUMNS) + 1))
        updates = ", ".join(f"{col} = EXCLUDED.{col}" for col in MUTABLE_COLUMNS)
        async with self._pool.acquire() as conn:
            await conn.execute(
                f"""
                INSERT INTO {self.table_name} ({', '.join(SNAPSHOT_COLUMNS)})
                VALUES ({placeholders})
                ON CONFLICT (run_id) DO UPDATE SET {updates}
                """,
                *(row[col] for col in SNAPSHOT_COLUMNS),
            )

    async def load_snapshot(self, run_id: str) -> Optional[WorkflowSnapshot]:
        await self.init()
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {', '.join(SNAPSHOT_COLUMNS)} FROM {self.table_name} WHERE run_id = $1",
                run_id,
            )
        if not row:
            return None
        return row_to_snapshot(row)

    async def list_runs(self, workflow_id: Optional[str] = None) -> list[WorkflowSnapshot]:
        await self.init()
        async with self._pool.acquire() as conn:
            if workflow_id is None:
                rows = await conn.fetch(self._select())
            else:
                rows = await conn.fetch(self._select("WHERE workflow_id = $1"), workflow_id)
        return [row_to_snapshot(r) for r in rows]

    async def get_runs_by_status(
        self, status: RunStatus | str, workflow_id: Optional[str] = None
    ) -> list[WorkflowSnapshot]:
        await self.init()
        async with self._pool.acquire() as conn:
            if workflow_id is None:
                rows = await conn.fetch(
                    self._select("WHERE status = $1"), status_value(status)
                )
            else:
                rows = await conn.fetch(
                    self._select("WHERE status = $1 AND workflow_id = $2"),
                    status_value(status),
                    workflow_id,
                )
        return [row_to_snapshot(r) for r in rows]

    async def delete_run(self, run_id: str) -> None:
        await self.init()
        async with self._pool.acquire() as conn:
            await conn.execute(f"DELETE FROM {self.table_name} WHERE run_id = $1", run_id)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._initialized = False
