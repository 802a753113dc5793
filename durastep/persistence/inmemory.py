"""In-memory implementation of the snapshot store."""

from __future__ import annotations

from typing import Dict, Optional

from ..contracts import RunStatus, WorkflowSnapshot
from .models import status_value
from .repository import SnapshotStore


class InMemorySnapshotStore(SnapshotStore):
    """Store run snapshots in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts. Snapshots are kept as JSON-compatible
    copies, so callers observe the same data a durable backend would return.
    """

    def __init__(self) -> None:
        self._runs: Dict[str, WorkflowSnapshot] = {}

    # ------------------------------------------------------------------
    async def init(self) -> None:
        return None

    async def save_snapshot(self, snapshot: WorkflowSnapshot) -> None:
        stored = snapshot.detached()
        existing = self._runs.get(snapshot.run_id)
        if existing is not None:
            stored.workflow_id = existing.workflow_id
            stored.input_data = existing.input_data
            stored.created_at = existing.created_at
        else:
            stored.created_at = stored.created_at or stored.timestamp
        self._runs[snapshot.run_id] = stored

    async def load_snapshot(self, run_id: str) -> Optional[WorkflowSnapshot]:
        snapshot = self._runs.get(run_id)
        return snapshot.detached() if snapshot else None

    async def list_runs(self, workflow_id: Optional[str] = None) -> list[WorkflowSnapshot]:
        return self._newest_first(
            s for s in self._runs.values() if workflow_id is None or s.workflow_id == workflow_id
        )

    async def get_runs_by_status(
        self, status: RunStatus | str, workflow_id: Optional[str] = None
    ) -> list[WorkflowSnapshot]:
        wanted = status_value(status)
        return self._newest_first(
            s
            for s in self._runs.values()
            if s.status.value == wanted
            and (workflow_id is None or s.workflow_id == workflow_id)
        )

    async def delete_run(self, run_id: str) -> None:
        self._runs.pop(run_id, None)

    async def close(self) -> None:
        return None

    @staticmethod
    def _newest_first(snapshots) -> list[WorkflowSnapshot]:
        ordered = sorted(snapshots, key=lambda s: s.timestamp, reverse=True)
        return [s.detached() for s in ordered]
