"""Shape validation at workflow and step boundaries.

A *shape* is anything pydantic's ``TypeAdapter`` understands: a ``BaseModel``
subclass, a ``TypedDict`` (imported from ``typing_extensions`` on Python
before 3.12), a dataclass or a plain annotation such as ``int`` or
``list[str]``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from .exceptions import WorkflowValidationError

Shape = Any


@lru_cache(maxsize=256)
def _cached_adapter(shape: Shape) -> TypeAdapter:
    return TypeAdapter(shape)


def get_adapter(shape: Shape) -> TypeAdapter:
    """Return a (cached where possible) ``TypeAdapter`` for ``shape``."""
    try:
        return _cached_adapter(shape)
    except TypeError:
        # unhashable annotation, build a fresh adapter
        return TypeAdapter(shape)


def _is_instance(value: Any, shape: Shape) -> bool:
    try:
        return isinstance(value, shape)
    except TypeError:
        # parameterized generics and typing constructs
        return False


def validate(
    shape: Shape,
    value: Any,
    boundary: Optional[str] = None,
    strict: bool = True,
) -> Any:
    """Validate ``value`` against ``shape`` and return the validated value.

    Validation is strict by default: a string is never accepted where the
    shape says ``int``. Pass ``strict=False`` for pydantic's lax coercion.

    Model instances of a different class than the target are validated by
    attribute so one step's output model can feed the next step's input model.

    Raises:
        WorkflowValidationError: If ``value`` does not conform to ``shape``.
    """
    adapter = get_adapter(shape)
    try:
        if isinstance(value, BaseModel) and not _is_instance(value, shape):
            value = value.model_dump()
        return adapter.validate_python(value, strict=strict)
    except ValidationError as exc:
        where = f" at {boundary}" if boundary else ""
        raise WorkflowValidationError(
            f"Validation failed{where}: {exc}",
            errors=exc.errors(include_url=False),
            boundary=boundary,
        ) from exc


def to_jsonable(value: Any) -> Any:
    """Convert a validated value into JSON-compatible python data.

    ``bytes`` are base64 encoded so arbitrary binary output survives storage.
    """
    return to_jsonable_python(value, fallback=str, bytes_mode="base64")


def json_schema(shape: Optional[Shape]) -> Optional[dict[str, Any]]:
    """Return the JSON schema of ``shape`` or ``None`` when absent."""
    if shape is None:
        return None
    return get_adapter(shape).json_schema()
