from enum import Enum

import pytest
from pydantic import BaseModel
from typing_extensions import TypedDict

from durastep.exceptions import WorkflowValidationError
from durastep.schema import json_schema, to_jsonable, validate


class User(BaseModel):
    name: str
    age: int


class Person(BaseModel):
    name: str


class Color(str, Enum):
    RED = "red"


class Point(TypedDict):
    x: int
    y: int


def test_validate_models_and_annotations():
    assert validate(User, {"name": "a", "age": 3}) == User(name="a", age=3)
    assert validate(list[int], [1, 2]) == [1, 2]
    assert validate(Color, Color.RED) is Color.RED
    assert validate(Point, {"x": 1, "y": 2}) == {"x": 1, "y": 2}


def test_validate_is_strict_by_default():
    with pytest.raises(WorkflowValidationError):
        validate(User, {"name": "a", "age": "3"})
    with pytest.raises(WorkflowValidationError):
        validate(list[int], ["1", 2])
    with pytest.raises(WorkflowValidationError):
        validate(Point, {"x": "1", "y": 2})


def test_validate_lax_mode_coerces():
    assert validate(User, {"name": "a", "age": "3"}, strict=False) == User(name="a", age=3)
    assert validate(list[int], ["1", 2], strict=False) == [1, 2]
    assert validate(Color, "red", strict=False) is Color.RED


def test_validate_accepts_other_model_instances():
    user = User(name="a", age=3)
    assert validate(Person, user) == Person(name="a")
    assert validate(dict, user) == {"name": "a", "age": 3}
    assert validate(User, user) == user


def test_validation_failure_carries_errors_and_boundary():
    with pytest.raises(WorkflowValidationError) as exc_info:
        validate(User, {"name": "a", "age": "old"}, boundary="step fetch input")

    err = exc_info.value
    assert err.boundary == "step fetch input"
    assert "step fetch input" in str(err)
    assert err.errors[0]["loc"] == ("age",)


def test_to_jsonable_and_json_schema():
    assert to_jsonable(User(name="a", age=3)) == {"name": "a", "age": 3}
    assert to_jsonable({"color": Color.RED}) == {"color": "red"}
    assert to_jsonable(b"\xff\xfe") in ("//4=", "__4=")
    assert json_schema(None) is None
    assert json_schema(User)["required"] == ["name", "age"]
