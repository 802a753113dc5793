"""Snapshot and step result contract tests."""

import json

from durastep.contracts import (
    ExecutionContext,
    FailedResult,
    RunStatus,
    RunningResult,
    SuccessResult,
    WorkflowSnapshot,
)


def test_snapshot_json_uses_camel_case():
    snapshot = WorkflowSnapshot(
        run_id="r1",
        workflow_id="wf",
        status=RunStatus.FAILED,
        execution_path=[0],
        step_results={"a": FailedResult(error="boom")},
        input_data={"n": 1},
        error="boom",
    )

    data = json.loads(snapshot.to_json())
    assert data["runId"] == "r1"
    assert data["workflowId"] == "wf"
    assert data["executionPath"] == [0]
    assert data["stepResults"]["a"]["status"] == "failed"
    assert data["inputData"] == {"n": 1}
    assert data["status"] == "failed"

    restored = WorkflowSnapshot.from_json(snapshot.to_json())
    assert restored == snapshot
    assert isinstance(restored.step_results["a"], FailedResult)


def test_step_results_are_discriminated_by_status():
    snapshot = WorkflowSnapshot.model_validate(
        {
            "runId": "r1",
            "workflowId": "wf",
            "status": "running",
            "stepResults": {
                "a": {"status": "success", "output": 1, "timestamp": "2026-01-01T00:00:00Z"},
                "b": {"status": "running", "timestamp": "2026-01-01T00:00:00Z"},
            },
        }
    )
    assert isinstance(snapshot.step_results["a"], SuccessResult)
    assert isinstance(snapshot.step_results["b"], RunningResult)
    assert not snapshot.step_results["b"].is_terminal
    assert snapshot.step_results["a"].is_terminal


def test_failed_result_keeps_exception_in_memory_only():
    exc = KeyError("missing")
    result = FailedResult.from_exception(exc)

    assert result.exception is exc
    assert result.error_type == "KeyError"
    assert "exception" not in result.model_dump()

    empty = FailedResult.from_exception(RuntimeError())
    assert empty.error == "RuntimeError"


def test_execution_context_snapshot_is_detached():
    context = ExecutionContext(workflow_id="wf", run_id="r1", state={"items": [1]})
    context.execution_path.append(0)
    context.step_results["a"] = SuccessResult(output={"n": 1})

    snapshot = context.snapshot(RunStatus.RUNNING)
    context.execution_path.append(1)
    context.state["items"].append(2)

    assert snapshot.execution_path == [0]
    assert snapshot.state == {"items": [1]}
    assert snapshot.step_results["a"].output == {"n": 1}
