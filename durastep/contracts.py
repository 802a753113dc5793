"""Core run-state contracts for the durastep workflow engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic.alias_generators import to_camel

from .schema import to_jsonable


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    """Run-level (and step-level) execution status."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class _ResultBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status != RunStatus.RUNNING.value


class SuccessResult(_ResultBase):
    """A step finished and produced a validated output."""

    status: Literal["success"] = "success"
    output: Any = None


class FailedResult(_ResultBase):
    """A step failed; ``error`` holds the failure message only."""

    status: Literal["failed"] = "failed"
    error: str
    error_type: Optional[str] = None

    _exception: Optional[BaseException] = PrivateAttr(default=None)

    @classmethod
    def from_exception(
        cls, exc: BaseException, timestamp: Optional[datetime] = None
    ) -> "FailedResult":
        result = cls(
            error=str(exc) or type(exc).__name__,
            error_type=type(exc).__name__,
            timestamp=timestamp or utcnow(),
        )
        result._exception = exc
        return result

    @property
    def exception(self) -> Optional[BaseException]:
        """Original exception, available only in the process that ran the step."""
        return self._exception


class RunningResult(_ResultBase):
    """Placeholder for a step in flight. The engine never persists it."""

    status: Literal["running"] = "running"


StepResult = Annotated[
    Union[SuccessResult, FailedResult, RunningResult], Field(discriminator="status")
]


class WorkflowSnapshot(BaseModel):
    """Durable, serializable projection of a run at one point in time.

    Attribute names are snake_case; JSON produced by :meth:`to_json` uses
    camelCase keys (``runId``, ``executionPath``...). Both are accepted on
    input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    run_id: str
    workflow_id: str
    status: RunStatus
    execution_path: List[int] = Field(default_factory=list)
    step_results: Dict[str, StepResult] = Field(default_factory=dict)
    state: Any = None
    input_data: Any = None
    result: Any = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
    created_at: Optional[datetime] = None

    def to_json(self) -> str:
        """Serialize snapshot to JSON with camelCase keys."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str) -> "WorkflowSnapshot":
        """Deserialize snapshot from JSON."""
        return cls.model_validate_json(data)

    def detached(self) -> "WorkflowSnapshot":
        """Return a copy holding only JSON-compatible data."""
        return WorkflowSnapshot.model_validate(self.model_dump(mode="json"))


def _jsonable_result(step_result: _ResultBase) -> Dict[str, Any]:
    data = step_result.model_dump(mode="json", exclude={"output"})
    if isinstance(step_result, SuccessResult):
        data["output"] = to_jsonable(step_result.output)
    return data


class ExecutionContext(BaseModel):
    """In-memory state of one ``execute()`` call.

    Owned by the engine for the duration of the call; never shared between
    runs.
    """

    workflow_id: str
    run_id: str
    execution_path: List[int] = Field(default_factory=list)
    step_results: Dict[str, StepResult] = Field(default_factory=dict)
    state: Any = None
    input_data: Any = None

    def snapshot(
        self,
        status: RunStatus,
        result: Any = None,
        error: Optional[str] = None,
    ) -> WorkflowSnapshot:
        """Project the context into a JSON-compatible snapshot."""
        return WorkflowSnapshot.model_validate(
            {
                "run_id": self.run_id,
                "workflow_id": self.workflow_id,
                "status": status,
                "execution_path": list(self.execution_path),
                "step_results": {
                    step_id: _jsonable_result(step_result)
                    for step_id, step_result in self.step_results.items()
                },
                "state": to_jsonable(self.state),
                "input_data": to_jsonable(self.input_data),
                "result": to_jsonable(result),
                "error": error,
                "timestamp": utcnow(),
            }
        )
