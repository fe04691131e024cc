import asyncio

import pytest

from dynamic_pager.reactive import Effect, Scope, Signal, batch
from dynamic_pager.scheduling import TaskRegistry, create_task, wait_for


@pytest.mark.asyncio
async def test_task_registry_tracks_and_discards_on_done():
    registry = TaskRegistry(name="test")
    finished = asyncio.Event()

    async def work():
        await asyncio.sleep(0)
        finished.set()
        return 1

    task = registry.create(work(), name="test.task")
    assert task.get_name() == "test.task"
    assert len(registry) == 1

    assert await task == 1
    assert finished.is_set()
    assert await wait_for(lambda: len(registry) == 0, timeout=0.2)


@pytest.mark.asyncio
async def test_task_registry_cancel_all():
    registry = TaskRegistry(name="test")
    started = asyncio.Event()

    async def work():
        started.set()
        await asyncio.sleep(10)

    task = registry.create(work())
    await started.wait()

    registry.cancel_all()
    assert len(registry) == 0
    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()


@pytest.mark.asyncio
async def test_failing_task_is_reported_to_the_loop():
    loop = asyncio.get_running_loop()
    reported = []
    loop.set_exception_handler(lambda loop, context: reported.append(context))
    registry = TaskRegistry(name="test")

    async def fail():
        raise ValueError("boom")

    task = registry.create(fail(), name="test.fail")
    with pytest.raises(ValueError):
        await task
    assert await wait_for(lambda: len(reported) == 1, timeout=0.2)
    assert isinstance(reported[0]["exception"], ValueError)
    loop.set_exception_handler(None)


@pytest.mark.asyncio
async def test_tasks_do_not_leak_reads_into_the_creating_scope():
    s = Signal(1, name="s")

    async def read():
        return s()

    with Scope() as scope:
        task = create_task(read())
    assert await task == 1
    assert scope.deps == []


@pytest.mark.asyncio
async def test_wait_for_times_out():
    assert await wait_for(lambda: False, timeout=0.01) is False
    assert await wait_for(lambda: True, timeout=0.01) is True


@pytest.mark.asyncio
async def test_tasks_started_inside_a_batch_still_notify_effects():
    s = Signal(0, name="s")
    seen = []
    effect = Effect(lambda: seen.append(s()), immediate=True)

    async def write():
        s.write(1)

    with batch():
        task = create_task(write())
    await task

    assert await wait_for(lambda: seen == [0, 1], timeout=0.2)
    effect.dispose()
