import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from durastep.contracts import FailedResult, RunStatus, SuccessResult, WorkflowSnapshot
from durastep.db import SQLModelSnapshotStore
from durastep.persistence import InMemorySnapshotStore, SQLiteSnapshotStore

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _snapshot(
    run_id: str,
    workflow_id: str = "wf",
    status: RunStatus = RunStatus.RUNNING,
    offset: int = 0,
    **kwargs,
) -> WorkflowSnapshot:
    return WorkflowSnapshot(
        run_id=run_id,
        workflow_id=workflow_id,
        status=status,
        input_data={"n": 1},
        timestamp=BASE_TIME + timedelta(seconds=offset),
        **kwargs,
    )


@pytest.fixture(params=["inmemory", "sqlite", "sqlmodel"])
def make_store(request, tmp_path):
    def factory():
        if request.param == "inmemory":
            return InMemorySnapshotStore()
        if request.param == "sqlite":
            return SQLiteSnapshotStore(tmp_path / "runs.db")
        return SQLModelSnapshotStore(f"sqlite+aiosqlite:///{tmp_path / 'runs_sqlmodel.db'}")

    return factory


@pytest.mark.asyncio
async def test_store_crud(make_store):
    store = make_store()
    await store.init()
    run_id = str(uuid.uuid4())

    assert await store.load_snapshot(run_id) is None

    await store.save_snapshot(_snapshot(run_id))
    await store.save_snapshot(
        _snapshot(
            run_id,
            status=RunStatus.SUCCESS,
            offset=5,
            execution_path=[0, 1],
            step_results={
                "a": SuccessResult(output={"x": 1}, timestamp=BASE_TIME),
                "b": FailedResult(error="boom", error_type="ValueError", timestamp=BASE_TIME),
            },
            state={"counter": 2},
            result={"s": "done"},
        )
    )

    loaded = await store.load_snapshot(run_id)
    assert loaded is not None
    assert loaded.run_id == run_id
    assert loaded.workflow_id == "wf"
    assert loaded.status == RunStatus.SUCCESS
    assert loaded.execution_path == [0, 1]
    assert loaded.step_results["a"] == SuccessResult(output={"x": 1}, timestamp=BASE_TIME)
    assert loaded.step_results["b"].error == "boom"
    assert loaded.state == {"counter": 2}
    assert loaded.input_data == {"n": 1}
    assert loaded.result == {"s": "done"}
    assert loaded.error is None
    assert loaded.timestamp == BASE_TIME + timedelta(seconds=5)
    # created_at survives the upsert
    assert loaded.created_at == BASE_TIME

    await store.delete_run(run_id)
    assert await store.load_snapshot(run_id) is None
    await store.close()


@pytest.mark.asyncio
async def test_store_save_is_idempotent(make_store):
    store = make_store()
    snapshot = _snapshot("run-1", status=RunStatus.FAILED, error="bad input")

    await store.save_snapshot(snapshot)
    once = await store.load_snapshot("run-1")
    await store.save_snapshot(snapshot)
    twice = await store.load_snapshot("run-1")

    assert once == twice
    assert len(await store.list_runs()) == 1
    await store.close()


@pytest.mark.asyncio
async def test_store_lists_newest_first_and_filters(make_store):
    store = make_store()
    await store.init()
    for i in range(3):
        await store.save_snapshot(_snapshot(f"a-{i}", workflow_id="alpha", offset=i))
    for i in range(2):
        await store.save_snapshot(
            _snapshot(f"b-{i}", workflow_id="beta", status=RunStatus.FAILED, offset=10 + i)
        )
    # updating an old run moves it to the front
    await store.save_snapshot(
        _snapshot("a-0", workflow_id="alpha", status=RunStatus.SUCCESS, offset=20)
    )

    alpha = await store.list_runs("alpha")
    assert [s.run_id for s in alpha] == ["a-0", "a-2", "a-1"]

    everything = await store.list_runs()
    assert [s.run_id for s in everything] == ["a-0", "b-1", "b-0", "a-2", "a-1"]

    failed = await store.get_runs_by_status(RunStatus.FAILED)
    assert [s.run_id for s in failed] == ["b-1", "b-0"]

    running_alpha = await store.get_runs_by_status("running", "alpha")
    assert [s.run_id for s in running_alpha] == ["a-2", "a-1"]
    assert await store.get_runs_by_status(RunStatus.SUCCESS, "beta") == []
    await store.close()


@pytest.mark.asyncio
async def test_store_init_is_idempotent_under_concurrency(make_store):
    store = make_store()
    await asyncio.gather(*(store.init() for _ in range(5)))
    await store.init()
    await store.save_snapshot(_snapshot("run-1"))
    assert (await store.load_snapshot("run-1")).run_id == "run-1"
    await store.close()


@pytest.mark.asyncio
async def test_store_concurrent_upserts_to_different_runs(make_store):
    store = make_store()
    await store.init()
    await asyncio.gather(
        *(store.save_snapshot(_snapshot(f"run-{i}", offset=i)) for i in range(10))
    )
    assert len(await store.list_runs("wf")) == 10
    await store.close()


@pytest.mark.asyncio
async def test_sqlite_store_survives_reopen(tmp_path):
    db_path = tmp_path / "durable.db"
    store = SQLiteSnapshotStore(db_path)
    await store.save_snapshot(_snapshot("run-1", status=RunStatus.SUCCESS, result=[1, 2]))
    await store.close()

    reopened = SQLiteSnapshotStore(db_path)
    snapshot = await reopened.load_snapshot("run-1")
    assert snapshot.status == RunStatus.SUCCESS
    assert snapshot.result == [1, 2]
    await reopened.close()


@pytest.mark.asyncio
async def test_inmemory_store_returns_copies():
    store = InMemorySnapshotStore()
    await store.save_snapshot(_snapshot("run-1", state={"items": [1]}))

    loaded = await store.load_snapshot("run-1")
    loaded.state["items"].append(2)

    assert (await store.load_snapshot("run-1")).state == {"items": [1]}
