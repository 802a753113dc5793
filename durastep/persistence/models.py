"""Row mapping shared by the SQL snapshot stores."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Mapping

from ..contracts import RunStatus, WorkflowSnapshot

SNAPSHOT_COLUMNS = (
    "run_id",
    "workflow_id",
    "status",
    "execution_path",
    "step_results",
    "state",
    "input_data",
    "result",
    "error",
    "created_at",
    "updated_at",
)

# Columns rewritten when an existing run is saved again.
MUTABLE_COLUMNS = (
    "status",
    "execution_path",
    "step_results",
    "state",
    "result",
    "error",
    "updated_at",
)


def status_value(status: RunStatus | str) -> str:
    return RunStatus(status).value


def snapshot_to_row(snapshot: WorkflowSnapshot) -> dict[str, Any]:
    """Flatten a snapshot into column values; JSON fields become strings."""
    data = snapshot.model_dump(mode="json")
    return {
        "run_id": snapshot.run_id,
        "workflow_id": snapshot.workflow_id,
        "status": status_value(snapshot.status),
        "execution_path": json.dumps(data["execution_path"]),
        "step_results": json.dumps(data["step_results"]),
        "state": json.dumps(data["state"]),
        "input_data": json.dumps(data["input_data"]),
        "result": json.dumps(data["result"]),
        "error": snapshot.error,
        "created_at": snapshot.created_at or snapshot.timestamp,
        "updated_at": snapshot.timestamp,
    }


def _loads(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def row_to_snapshot(row: Mapping[str, Any]) -> WorkflowSnapshot:
    """Rebuild a snapshot from a database row."""
    return WorkflowSnapshot(
        run_id=row["run_id"],
        workflow_id=row["workflow_id"],
        status=row["status"],
        execution_path=_loads(row["execution_path"]) or [],
        step_results=_loads(row["step_results"]) or {},
        state=_loads(row["state"]),
        input_data=_loads(row["input_data"]),
        result=_loads(row["result"]),
        error=row["error"],
        timestamp=row["updated_at"],
        created_at=row["created_at"],
    )


def isoformat(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")
