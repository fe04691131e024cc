import pytest

from dynamic_pager.reactive import BATCH


@pytest.fixture(autouse=True)
def _reset_global_batch():  # pyright: ignore[reportUnusedFunction]
    yield
    # Effects left over by a test must not run in the next one
    global_batch = BATCH.get()
    global_batch.effects.clear()
    global_batch.scheduled_on = None  # type: ignore[attr-defined]
