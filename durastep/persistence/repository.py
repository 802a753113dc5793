"""Store abstraction for workflow run snapshots."""

from __future__ import annotations

from typing import Optional, Protocol

from ..contracts import RunStatus, WorkflowSnapshot


class SnapshotStore(Protocol):
    """Protocol for snapshot persistence backends.

    Every operation is atomic from the caller's point of view. Backend errors
    propagate unchanged; the engine never retries them.
    """

    async def init(self) -> None:
        """Create tables and indexes if missing. Idempotent and safe to race."""

    async def save_snapshot(self, snapshot: WorkflowSnapshot) -> None:
        """Insert or fully replace the snapshot stored under its run id.

        ``created_at`` of an existing row is preserved.
        """

    async def load_snapshot(self, run_id: str) -> Optional[WorkflowSnapshot]:
        """Return the latest snapshot of ``run_id`` or ``None``."""

    async def list_runs(self, workflow_id: Optional[str] = None) -> list[WorkflowSnapshot]:
        """Return snapshots, most recently updated first."""

    async def get_runs_by_status(
        self, status: RunStatus | str, workflow_id: Optional[str] = None
    ) -> list[WorkflowSnapshot]:
        """Return snapshots in ``status``, most recently updated first."""

    async def delete_run(self, run_id: str) -> None:
        """Remove a run. Never called by the engine."""

    async def close(self) -> None:
        """Release backend resources."""
