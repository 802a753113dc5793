from .models import WorkflowRunRecord
from .snapshot_db import SQLModelSnapshotStore

__all__ = [
    "WorkflowRunRecord",
    "SQLModelSnapshotStore",
]
