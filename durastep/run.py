"""Run handle binding a run id to a workflow definition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from .contracts import WorkflowSnapshot

if TYPE_CHECKING:
    from .execute import ExecutionEngine
    from .persistence import SnapshotStore
    from .workflow import Workflow


class WorkflowRun:
    """A single run of a workflow.

    Holds no state of its own beyond the run id; execution is delegated to the
    engine and inspection to the snapshot store.
    """

    def __init__(
        self,
        workflow: "Workflow",
        run_id: str,
        engine: "ExecutionEngine",
        store: "SnapshotStore",
    ) -> None:
        self._workflow = workflow
        self._run_id = run_id
        self._engine = engine
        self._store = store

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def workflow_id(self) -> str:
        return self._workflow.id

    @property
    def workflow(self) -> "Workflow":
        return self._workflow

    async def start(self, input_data: Any, initial_state: Any = None) -> Any:
        """Execute the workflow for this run and return its validated output.

        Raises whatever made the run fail, after the failure was persisted.
        """
        return await self._engine.execute(
            workflow=self._workflow,
            run_id=self._run_id,
            input_data=input_data,
            initial_state=initial_state,
        )

    async def get_snapshot(self) -> Optional[WorkflowSnapshot]:
        """Load the latest persisted snapshot of this run."""
        return await self._store.load_snapshot(self._run_id)

    def __repr__(self) -> str:
        return f"WorkflowRun(workflow_id={self.workflow_id!r}, run_id={self._run_id!r})"
