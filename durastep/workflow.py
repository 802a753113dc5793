"""Workflow definitions and the copy-on-append builder used to assemble them."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .exceptions import WorkflowDefinitionError
from .execute import ExecutionEngine
from .persistence import SnapshotStore, get_store
from .run import WorkflowRun
from .schema import Shape, json_schema
from .steps import Step


@dataclass(frozen=True)
class WorkflowConfig:
    """Identity and declared shapes of a workflow."""

    id: str
    input_schema: Shape
    output_schema: Shape
    description: Optional[str] = None
    state_schema: Optional[Shape] = None
    strict: bool = True


@dataclass(frozen=True)
class WorkflowBuilder:
    """Immutable, append-only chain of steps.

    Every :meth:`then` returns a new builder, so partial chains can be reused
    to branch into several workflows without aliasing.
    """

    config: WorkflowConfig
    steps: Tuple[Step, ...] = field(default_factory=tuple)

    def then(self, step: Step) -> "WorkflowBuilder":
        """Return a new builder with ``step`` appended."""
        if not isinstance(step, Step):
            raise WorkflowDefinitionError(
                f"Workflow {self.config.id} can only chain Step instances, got {type(step).__name__}"
            )
        return WorkflowBuilder(self.config, self.steps + (step,))

    def commit(self, store: Optional[SnapshotStore] = None) -> "Workflow":
        """Finalize the chain into an executable :class:`Workflow`."""
        return Workflow(self.config, self.steps, store=store)


class Workflow:
    """Executable, immutable workflow definition."""

    def __init__(
        self,
        config: WorkflowConfig,
        steps: Tuple[Step, ...],
        store: Optional[SnapshotStore] = None,
    ) -> None:
        seen: set[str] = set()
        for step in steps:
            if step.id in seen:
                raise WorkflowDefinitionError(
                    f"Duplicate step id '{step.id}' in workflow {config.id}"
                )
            seen.add(step.id)
        if store is None:
            store = get_store()
        self._config = config
        self._steps = tuple(steps)
        self._store = store
        self._engine = ExecutionEngine(store)

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def description(self) -> Optional[str]:
        return self._config.description

    @property
    def input_schema(self) -> Shape:
        return self._config.input_schema

    @property
    def output_schema(self) -> Shape:
        return self._config.output_schema

    @property
    def state_schema(self) -> Optional[Shape]:
        return self._config.state_schema

    @property
    def strict(self) -> bool:
        """Whether workflow-level input, output and state reject coercible values."""
        return self._config.strict

    @property
    def steps(self) -> Tuple[Step, ...]:
        """Steps in execution order."""
        return self._steps

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def engine(self) -> ExecutionEngine:
        return self._engine

    def get_step(self, step_id: str) -> Step:
        for step in self._steps:
            if step.id == step_id:
                return step
        raise KeyError(step_id)

    async def init(self) -> None:
        """Initialize the backing store (idempotent)."""
        await self._store.init()

    async def create_run(self, run_id: Optional[str] = None) -> WorkflowRun:
        """Create a handle for a new run, generating a run id if needed."""
        await self.init()
        return WorkflowRun(self, run_id or str(uuid.uuid4()), self._engine, self._store)

    def describe(self) -> Dict[str, Any]:
        """JSON-compatible description of the workflow and its shapes."""
        return {
            "id": self.id,
            "description": self.description,
            "inputSchema": json_schema(self.input_schema),
            "outputSchema": json_schema(self.output_schema),
            "stateSchema": json_schema(self.state_schema),
            "steps": [
                {
                    "id": step.id,
                    "description": step.description,
                    "inputSchema": json_schema(step.input_schema),
                    "outputSchema": json_schema(step.output_schema),
                }
                for step in self._steps
            ],
        }

    def __repr__(self) -> str:
        return f"Workflow(id={self.id!r}, steps={[s.id for s in self._steps]!r})"


def create_workflow(
    id: str,
    input_schema: Shape,
    output_schema: Shape,
    description: Optional[str] = None,
    state_schema: Optional[Shape] = None,
    strict: bool = True,
) -> WorkflowBuilder:
    """Start a new workflow definition.

    Example::

        workflow = (
            create_workflow(id="greeting", input_schema=UserId, output_schema=Sent)
            .then(fetch_user)
            .then(send_message)
            .commit()
        )
    """
    return WorkflowBuilder(
        WorkflowConfig(
            id=id,
            input_schema=input_schema,
            output_schema=output_schema,
            description=description,
            state_schema=state_schema,
            strict=strict,
        )
    )
