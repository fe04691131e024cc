import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

from anyio import from_thread

from dynamic_pager.reactive import root_context

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _start(
    coroutine: Coroutine[Any, Any, T],
    name: str | None,
    on_done: Callable[[asyncio.Task[T]], None] | None,
) -> asyncio.Task[T]:
    # Tasks are often started from an effect or a batch. They run in a root
    # context so the caller's scope does not collect their reads and their
    # writes do not land in a batch that has already flushed.
    loop = asyncio.get_running_loop()
    task = loop.create_task(coroutine, name=name, context=root_context())
    if on_done:
        task.add_done_callback(on_done)
    return task


def create_task(
    coroutine: Coroutine[Any, Any, T],
    *,
    name: str | None = None,
    on_done: Callable[[asyncio.Task[T]], None] | None = None,
) -> asyncio.Task[T]:
    """Create and schedule a coroutine task on the running loop.

    Called from a worker thread started through anyio, the task is created on
    the loop that owns that thread.
    """

    try:
        asyncio.get_running_loop()
    except RuntimeError:

        async def _runner():
            return _start(coroutine, name, on_done)

        return from_thread.run(_runner)
    return _start(coroutine, name, on_done)


def _report_task_exception(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is None:
        return
    logger.error("Task %s failed", task.get_name(), exc_info=exc)
    task.get_loop().call_exception_handler(
        {
            "message": f"Unhandled exception in task {task.get_name()}",
            "exception": exc,
            "task": task,
        }
    )


class TaskRegistry:
    """Keeps fire-and-forget tasks alive until they finish."""

    _tasks: set[asyncio.Task[Any]]
    name: str | None

    def __init__(self, name: str | None = None) -> None:
        self._tasks = set()
        self.name = name

    def track(self, task: asyncio.Task[T]) -> asyncio.Task[T]:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_report_task_exception)
        return task

    def create(
        self,
        coroutine: Coroutine[Any, Any, T],
        *,
        name: str | None = None,
        on_done: Callable[[asyncio.Task[T]], None] | None = None,
    ) -> asyncio.Task[T]:
        task = create_task(coroutine, name=name, on_done=on_done)
        return self.track(task)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)


async def wait_for(
    condition: Callable[[], bool], timeout: float = 1.0, interval: float = 0
) -> bool:
    """Poll `condition` on the event loop until it holds or `timeout` expires."""
    deadline = time.monotonic() + timeout
    while True:
        if condition():
            return True
        if time.monotonic() >= deadline:
            return False
        await asyncio.sleep(interval)
