"""Typed step definitions and the context handed to step functions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from .contracts import ExecutionContext, SuccessResult
from .exceptions import StepResultLookupError
from .schema import Shape, validate

ExecuteFunction = Callable[["StepContext"], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class Step:
    """A named unit of work with declared input and output shapes.

    ``execute`` receives a :class:`StepContext` and may be a plain function or
    a coroutine function.
    """

    id: str
    input_schema: Shape
    output_schema: Shape
    execute: ExecuteFunction
    description: Optional[str] = None
    state_schema: Optional[Shape] = None
    strict: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Step id must be a non-empty string")
        if not callable(self.execute):
            raise TypeError(f"Step {self.id} execute must be callable")


def create_step(
    id: str,
    input_schema: Shape,
    output_schema: Shape,
    execute: ExecuteFunction,
    description: Optional[str] = None,
    state_schema: Optional[Shape] = None,
    strict: bool = True,
) -> Step:
    """Create a workflow step.

    ``strict=False`` lets pydantic coerce the step's input and output (for
    example ``"3"`` into ``3``) instead of rejecting them.
    """
    return Step(
        id=id,
        input_schema=input_schema,
        output_schema=output_schema,
        execute=execute,
        description=description,
        state_schema=state_schema,
        strict=strict,
    )


def step(
    id: str,
    input_schema: Shape,
    output_schema: Shape,
    description: Optional[str] = None,
    state_schema: Optional[Shape] = None,
    strict: bool = True,
) -> Callable[[ExecuteFunction], Step]:
    """Decorator turning a function into a :class:`Step`.

    Example::

        @step(id="double", input_schema=Number, output_schema=Number)
        async def double(ctx: StepContext) -> dict:
            return {"n": ctx.input_data.n * 2}
    """

    def decorator(func: ExecuteFunction) -> Step:
        return Step(
            id=id,
            input_schema=input_schema,
            output_schema=output_schema,
            execute=func,
            description=description if description is not None else func.__doc__,
            state_schema=state_schema,
            strict=strict,
        )

    return decorator


class StepContext:
    """View of the running workflow exposed to a step's execute function."""

    def __init__(
        self,
        input_data: Any,
        context: ExecutionContext,
        state_schema: Optional[Shape] = None,
        strict: bool = True,
    ) -> None:
        self.input_data = input_data
        self._context = context
        self._state_schema = state_schema
        self._strict = strict

    @property
    def run_id(self) -> str:
        return self._context.run_id

    @property
    def workflow_id(self) -> str:
        return self._context.workflow_id

    @property
    def state(self) -> Any:
        """Current workflow-level state, shared by every step of the run.

        With a declared state shape the run starts from that shape built out
        of ``{}`` (for example a model whose fields all have defaults). When
        the shape has required fields the run starts from a plain ``{}`` until
        a step calls :meth:`set_state`.
        """
        return self._context.state

    def set_state(self, state: Any) -> None:
        """Replace the workflow-level state seen by this and later steps."""
        if self._state_schema is not None:
            state = validate(
                self._state_schema, state, boundary="workflow state", strict=self._strict
            )
        self._context.state = state

    def get_step_result(self, step: Union[Step, str]) -> Any:
        """Return the output of an earlier step that completed successfully.

        Raises:
            StepResultLookupError: If the step has not run or did not succeed.
        """
        step_id = step if isinstance(step, str) else step.id
        result = self._context.step_results.get(step_id)
        if result is None:
            raise StepResultLookupError(step_id, "has not been executed yet")
        if not isinstance(result, SuccessResult):
            raise StepResultLookupError(step_id, "did not complete successfully")
        return result.output

    def get_init_data(self) -> Any:
        """Return the validated input the workflow run was started with."""
        return self._context.input_data
