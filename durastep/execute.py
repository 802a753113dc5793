"""Execution engine driving a workflow run step by step."""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, Optional

from pydantic_core import PydanticSerializationError

from .contracts import (
    ExecutionContext,
    FailedResult,
    RunStatus,
    StepResult,
    SuccessResult,
)
from .exceptions import StepExecutionError, WorkflowValidationError
from .schema import Shape, to_jsonable, validate
from .steps import Step, StepContext

if TYPE_CHECKING:
    from .persistence import SnapshotStore
    from .workflow import Workflow

logger = logging.getLogger(__name__)


class ExecutionEngine:
    """Runs workflows sequentially, snapshotting progress after every step.

    The engine keeps no per-run state; any number of runs may execute
    concurrently against the same engine and store.
    """

    def __init__(self, store: "SnapshotStore") -> None:
        self._store = store

    @property
    def store(self) -> "SnapshotStore":
        return self._store

    async def execute(
        self,
        workflow: "Workflow",
        run_id: str,
        input_data: Any,
        initial_state: Any = None,
    ) -> Any:
        """Execute ``workflow`` from start to finish and return its output.

        A ``failed`` snapshot is persisted before any failure is re-raised.
        Storage errors propagate unchanged.
        """
        logger.info(f"Starting run_id={run_id} of workflow {workflow.id}")

        try:
            validated_input = validate(
                workflow.input_schema,
                input_data,
                boundary=f"workflow {workflow.id} input",
                strict=workflow.strict,
            )
            state = self._initial_state(workflow, initial_state)
        except WorkflowValidationError as exc:
            logger.warning(f"Rejected input for run_id={run_id} of workflow {workflow.id}: {exc}")
            rejected = ExecutionContext(
                workflow_id=workflow.id,
                run_id=run_id,
                state=to_jsonable(initial_state),
                input_data=to_jsonable(input_data),
            )
            await self._store.save_snapshot(
                rejected.snapshot(RunStatus.FAILED, error=str(exc))
            )
            raise

        context = ExecutionContext(
            workflow_id=workflow.id,
            run_id=run_id,
            state=state,
            input_data=validated_input,
        )
        failure_recorded = False

        try:
            await self._save(context, RunStatus.RUNNING)

            current_output: Any = validated_input
            for index, step in enumerate(workflow.steps):
                # recorded before running so an interrupted step still shows up
                context.execution_path.append(index)

                result = await self.execute_step(
                    step,
                    context,
                    current_output,
                    state_schema=workflow.state_schema or step.state_schema,
                    state_strict=(
                        workflow.strict if workflow.state_schema is not None else step.strict
                    ),
                )
                context.step_results[step.id] = result

                if isinstance(result, FailedResult):
                    logger.warning(
                        f"Step {step.id} failed for run_id={run_id}: {result.error}"
                    )
                    await self._save(context, RunStatus.FAILED, error=result.error)
                    failure_recorded = True
                    raise result.exception or StepExecutionError(step.id, result.error)

                current_output = result.output
                logger.info(f"Step {step.id} completed for run_id={run_id}")
                await self._save(context, RunStatus.RUNNING)

            try:
                output = validate(
                    workflow.output_schema,
                    current_output,
                    boundary=f"workflow {workflow.id} output",
                    strict=workflow.strict,
                )
            except WorkflowValidationError as exc:
                await self._save(context, RunStatus.FAILED, error=str(exc))
                failure_recorded = True
                raise

            await self._save(context, RunStatus.SUCCESS, result=output)
            logger.info(f"Workflow {workflow.id} completed for run_id={run_id}")
            return output
        except Exception as exc:
            if not failure_recorded:
                try:
                    await self._save(context, RunStatus.FAILED, error=str(exc) or type(exc).__name__)
                except Exception:
                    logger.exception(
                        f"Could not record failure for run_id={run_id} of workflow {workflow.id}"
                    )
            raise

    async def execute_step(
        self,
        step: Step,
        context: ExecutionContext,
        input_data: Any,
        state_schema: Optional[Shape] = None,
        state_strict: bool = True,
    ) -> StepResult:
        """Run a single step and return its outcome; never raises for step errors."""
        try:
            validated_input = validate(
                step.input_schema,
                input_data,
                boundary=f"step {step.id} input",
                strict=step.strict,
            )
        except WorkflowValidationError as exc:
            return FailedResult.from_exception(exc)

        step_context = StepContext(
            validated_input, context, state_schema=state_schema, strict=state_strict
        )
        try:
            output = step.execute(step_context)
            if inspect.isawaitable(output):
                output = await output
        except Exception as exc:
            return FailedResult.from_exception(exc)

        try:
            validated_output = validate(
                step.output_schema,
                output,
                boundary=f"step {step.id} output",
                strict=step.strict,
            )
        except WorkflowValidationError as exc:
            return FailedResult.from_exception(exc)

        try:
            # snapshots store the output as JSON
            to_jsonable(validated_output)
        except PydanticSerializationError as exc:
            return FailedResult.from_exception(exc)

        return SuccessResult(output=validated_output)

    def _initial_state(self, workflow: "Workflow", initial_state: Any) -> Any:
        if workflow.state_schema is None:
            return initial_state
        if initial_state is None:
            try:
                return validate(workflow.state_schema, {}, strict=workflow.strict)
            except WorkflowValidationError:
                # shape has required fields; steps must set_state before reading
                return {}
        return validate(
            workflow.state_schema,
            initial_state,
            boundary=f"workflow {workflow.id} state",
            strict=workflow.strict,
        )

    async def _save(
        self,
        context: ExecutionContext,
        status: RunStatus,
        result: Any = None,
        error: Optional[str] = None,
    ) -> None:
        logger.debug(
            f"Saving {status.value} snapshot for run_id={context.run_id} "
            f"(path={context.execution_path})"
        )
        await self._store.save_snapshot(context.snapshot(status, result=result, error=error))
