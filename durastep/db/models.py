from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from ..constants import DEFAULT_TABLE_NAME
from ..contracts import WorkflowSnapshot


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo; stored values are always UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class WorkflowRunRecord(SQLModel, table=True):
    """Latest snapshot of one workflow run."""

    __tablename__ = DEFAULT_TABLE_NAME

    run_id: str = Field(primary_key=True)
    workflow_id: str = Field(index=True)
    status: str = Field(index=True)
    execution_path: list = Field(default_factory=list, sa_column=Column(JSON))
    step_results: dict = Field(default_factory=dict, sa_column=Column(JSON))
    state: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    input_data: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    result: Optional[Any] = Field(default=None, sa_column=Column(JSON))
    error: Optional[str] = None
    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    updated_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )

    @classmethod
    def from_snapshot(cls, snapshot: WorkflowSnapshot) -> "WorkflowRunRecord":
        data = snapshot.model_dump(mode="json")
        return cls(
            run_id=snapshot.run_id,
            workflow_id=snapshot.workflow_id,
            status=snapshot.status.value,
            execution_path=data["execution_path"],
            step_results=data["step_results"],
            state=data["state"],
            input_data=data["input_data"],
            result=data["result"],
            error=snapshot.error,
            created_at=snapshot.created_at or snapshot.timestamp,
            updated_at=snapshot.timestamp,
        )

    def apply(self, snapshot: WorkflowSnapshot) -> None:
        """Overwrite the mutable columns from ``snapshot``."""
        data = snapshot.model_dump(mode="json")
        self.status = snapshot.status.value
        self.execution_path = data["execution_path"]
        self.step_results = data["step_results"]
        self.state = data["state"]
        self.result = data["result"]
        self.error = snapshot.error
        self.updated_at = snapshot.timestamp

    def to_snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            run_id=self.run_id,
            workflow_id=self.workflow_id,
            status=self.status,
            execution_path=self.execution_path or [],
            step_results=self.step_results or {},
            state=self.state,
            input_data=self.input_data,
            result=self.result,
            error=self.error,
            timestamp=_aware(self.updated_at),
            created_at=_aware(self.created_at),
        )
