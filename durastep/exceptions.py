"""Exception hierarchy raised by the workflow engine."""

from __future__ import annotations

from typing import Any, Optional


class DurastepError(Exception):
    """Base class for all durastep errors."""


class WorkflowDefinitionError(DurastepError):
    """Raised when a workflow is assembled incorrectly (e.g. duplicate step ids)."""


class WorkflowValidationError(DurastepError):
    """A value does not conform to its declared shape.

    Raised at workflow input/output boundaries and at step input/output
    boundaries. ``errors`` holds pydantic's structured error list when the
    failure originated from pydantic.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[list[dict[str, Any]]] = None,
        boundary: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.boundary = boundary


class StepResultLookupError(DurastepError, LookupError):
    """A step asked for the output of a step that has not succeeded yet."""

    def __init__(self, step_id: str, reason: str) -> None:
        super().__init__(f"Step {step_id} {reason}")
        self.step_id = step_id


class StepExecutionError(DurastepError):
    """A step failed without an exception object to re-raise."""

    def __init__(self, step_id: str, message: str) -> None:
        super().__init__(message)
        self.step_id = step_id
