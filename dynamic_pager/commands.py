import asyncio
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from dynamic_pager.controller import PagerController

E = TypeVar("E")


@dataclass(frozen=True)
class PagerCommands(Generic[E]):
    """The actions behind a pager's "add" and "delete" buttons."""

    add_go_previous: Callable[[int], asyncio.Task[None]]
    add_go_next: Callable[[int], asyncio.Task[None]]
    delete_go_previous: Callable[[int, E], asyncio.Task[None]]
    delete_go_next: Callable[[int, E], asyncio.Task[None]]


def create_pager_commands(
    controller: PagerController[E], make_item: Callable[[str], E]
) -> PagerCommands[E]:
    """Wire button actions to `controller`.

    New items are built by `make_item` from a label. Their numbering continues
    after the items already in the pager.
    """
    next_id = len(controller.get_items())

    def new_item(prefix: str) -> E:
        nonlocal next_id
        next_id += 1
        return make_item(f"{prefix} Item {next_id}")

    return PagerCommands(
        add_go_previous=lambda page: controller.insert_before(
            page, new_item("Previous")
        ),
        add_go_next=lambda page: controller.insert_after(page, new_item("Next")),
        delete_go_previous=controller.delete_and_slide_to_previous,
        delete_go_next=controller.delete_and_slide_to_next,
    )
