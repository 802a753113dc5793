"""Durastep: durable, typed sequential workflow execution."""

from .contracts import (
    ExecutionContext,
    FailedResult,
    RunningResult,
    RunStatus,
    StepResult,
    SuccessResult,
    WorkflowSnapshot,
)
from .exceptions import (
    DurastepError,
    StepExecutionError,
    StepResultLookupError,
    WorkflowDefinitionError,
    WorkflowValidationError,
)
from .execute import ExecutionEngine
from .persistence import SnapshotStore, get_store
from .run import WorkflowRun
from .steps import Step, StepContext, create_step, step
from .workflow import Workflow, WorkflowBuilder, create_workflow

__version__ = "0.1.0"
__all__ = [
    "ExecutionContext",
    "ExecutionEngine",
    "FailedResult",
    "RunningResult",
    "RunStatus",
    "SnapshotStore",
    "Step",
    "StepContext",
    "StepResult",
    "SuccessResult",
    "Workflow",
    "WorkflowBuilder",
    "WorkflowRun",
    "WorkflowSnapshot",
    "create_step",
    "create_workflow",
    "get_store",
    "step",
    "DurastepError",
    "StepExecutionError",
    "StepResultLookupError",
    "WorkflowDefinitionError",
    "WorkflowValidationError",
]
