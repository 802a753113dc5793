"""Shared workflow fixtures."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from durastep import create_step, create_workflow
from durastep.persistence import InMemorySnapshotStore


class Number(BaseModel):
    n: int


class Text(BaseModel):
    s: str


def _double(ctx):
    return {"n": ctx.input_data.n * 2}


def _stringify(ctx):
    if ctx.input_data.n == 0:
        raise ValueError("cannot stringify zero")
    return {"s": str(ctx.input_data.n)}


async def _prefix(ctx):
    return Text(s=f"value:{ctx.input_data.s}")


double = create_step(id="double", input_schema=Number, output_schema=Number, execute=_double)
stringify = create_step(
    id="stringify", input_schema=Number, output_schema=Text, execute=_stringify
)
prefix = create_step(id="prefix", input_schema=Text, output_schema=Text, execute=_prefix)


@pytest.fixture
def store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def numbers_workflow(store):
    """double -> stringify -> prefix, backed by the in-memory store."""
    return (
        create_workflow(id="numbers", input_schema=Number, output_schema=Text)
        .then(double)
        .then(stringify)
        .then(prefix)
        .commit(store=store)
    )
