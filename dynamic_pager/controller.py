from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Iterable
from typing import Any, Generic, Optional, TypedDict, TypeVar, Unpack

from dynamic_pager import paging
from dynamic_pager.decorators import computed, effect
from dynamic_pager.reactive import batch, untrack
from dynamic_pager.scheduling import TaskRegistry
from dynamic_pager.state import State

E = TypeVar("E")

logger = logging.getLogger(__name__)


class PagerConfig(TypedDict, total=False):
    name: str
    initial_items: Iterable[Any]


class PagerController(State, Generic[E]):
    """
    Keeps a pager widget in sync with an ordered list of items while pages are
    inserted and deleted.

    The widget reads `scroll_to_page` (animated) and `focus_page` (instant) as
    commands, honours `scroll_by_user_enabled` and reports every page it comes
    to rest on through `declare_settled_page`. Whenever the settled page
    matches `target_page`, the controller finishes the pending deletion and
    fires the queued follow-up scroll, in that order.

    Insert and delete operations are scheduled as tasks on the running event
    loop. They return the task, which callers are free to ignore.

    ```python
    pager = PagerController(initial_items=["A", "B", "C"])
    pager.declare_settled_page(0)
    pager.delete_and_slide_to_next(0, "A")  # scroll_to_page == 1
    # ... the widget animates, then reports:
    pager.declare_settled_page(1)  # "A" is removed once the page settles
    ```
    """

    # Reactive projection of the item list, for renderers. Holds a copy, so
    # mutating it does not touch the controller's list.
    items: list[Any]
    # Disabled while a deletion waits for the widget to navigate away
    scroll_by_user_enabled: bool = True
    settled_page: Optional[int] = None
    target_page: Optional[int] = None
    scroll_to_page: Optional[int] = None
    focus_page: Optional[int] = None

    def __init__(self, **config: Unpack[PagerConfig]):
        self.config = config
        self.name = config.get("name", "pager")
        self._lock = asyncio.Lock()
        self._tasks = TaskRegistry(name=self.name)
        self._current_items: list[E] = list(config.get("initial_items", ()))
        self.items = list(self._current_items)
        self.pending_item_to_delete: Optional[E] = None
        self.next_scroll_to_page: Optional[int] = None

    # ------------------------------------------------------------------
    # Scroll completion
    # ------------------------------------------------------------------

    @computed
    def completed_page(self) -> Optional[int]:
        """The settled page, when it is the page the controller expects."""
        settled = self.settled_page
        if settled is not None and settled == self.target_page:
            return settled
        return None

    @effect(immediate=True)
    def _watch_scroll_completion(self):
        page = self.completed_page
        if page is None:
            return
        logger.debug("[%s] scroll completed on page %d", self.name, page)
        self._launch(self.on_scroll_completed(), "scroll_completed")

    async def on_scroll_completed(self) -> None:
        await self.apply_pending_deletion()
        self.apply_next_scroll_to_page()

    # ------------------------------------------------------------------
    # Insert a page after
    # ------------------------------------------------------------------

    def insert_after(self, page: int, item: E) -> asyncio.Task[None]:
        return self._launch(self._insert_after(page, item), "insert_after")

    async def _insert_after(self, page: int, item: E) -> None:
        async with self._lock:
            updated_items = list(self._current_items)
            if not updated_items:
                updated_items.append(item)
                self._set_items_without_lock(updated_items)
                self.slide_to_first()
            else:
                next_page = page + 1
                updated_items.insert(next_page, item)
                self._set_items_without_lock(updated_items)
                logger.debug("[%s] inserted page %d", self.name, next_page)
                self.set_scroll_to_page(next_page)

    # ------------------------------------------------------------------
    # Delete a page
    # ------------------------------------------------------------------

    def delete_and_slide_to_previous(self, page: int, item: E) -> asyncio.Task[None]:
        return self._launch(
            self._delete_and_slide(page, item, self.slide_to_previous),
            "delete_and_slide_to_previous",
        )

    def delete_and_slide_to_next(self, page: int, item: E) -> asyncio.Task[None]:
        return self._launch(
            self._delete_and_slide(page, item, self.slide_to_next),
            "delete_and_slide_to_next",
        )

    async def _delete_and_slide(
        self, page: int, item: E, navigate: Callable[[int], Any]
    ) -> None:
        if self.pending_item_to_delete == item:
            logger.debug("[%s] %r is already pending deletion", self.name, item)
            return
        if item not in self._current_items:
            logger.debug("[%s] %r is not in the pager, nothing to delete", self.name, item)
            return

        if len(self._current_items) == 1:
            # Nowhere to navigate to, delete right away
            self.pending_item_to_delete = item
            await self.apply_pending_deletion()
        else:
            navigate(page)
            self.pending_item_to_delete = item
            self.scroll_by_user_enabled = False

    async def apply_pending_deletion(self) -> None:
        """
        Remove the pending item, if any, and unlock user scrolling.

        Runs once the widget has settled on another page, so the deleted page is
        never pulled out from under a running animation.
        """
        async with self._lock:
            item = self.pending_item_to_delete
            if item is not None:
                await self.process_deletion(item)
                self.pending_item_to_delete = None
            self.scroll_by_user_enabled = True

    async def process_deletion(self, item: E) -> None:
        """Remove the first occurrence of `item`. Called with the lock held.

        Subclasses can extend this to delete the item from their own storage.
        """
        updated_items = list(self._current_items)
        try:
            deleted_at = updated_items.index(item)
        except ValueError:
            logger.debug("[%s] %r was already removed", self.name, item)
            return

        del updated_items[deleted_at]
        self._set_items_without_lock(updated_items)
        logger.debug("[%s] deleted page %d", self.name, deleted_at)

        if not updated_items:
            with batch():
                self.target_page = None
                self.settled_page = None
        else:
            self._update_focus_after_deletion(deleted_at, len(updated_items))

    def _update_focus_after_deletion(self, deleted_at: int, items_size: int) -> None:
        # Pages after the deleted one shifted left by one
        current_page = self.target_page
        if current_page is None:
            return

        is_current_page_on_right = current_page > deleted_at
        is_deleted_page_not_last = deleted_at < items_size

        if is_current_page_on_right and is_deleted_page_not_last:
            self.focus_page = current_page - 1

    # ------------------------------------------------------------------
    # Insert a page before
    # ------------------------------------------------------------------

    def insert_before(self, target_page: int, item: E) -> asyncio.Task[None]:
        return self._launch(self._insert_before(target_page, item), "insert_before")

    async def _insert_before(self, target_page: int, item: E) -> None:
        async with self._lock:
            if not self._current_items:
                self._set_items_without_lock([item])
                self.slide_to_first()
                return

            current_page = self.next_page_index(target_page)
            should_add_to_end = current_page == 0 and target_page != 0

            if should_add_to_end:
                self._append_page(item)
            else:
                self._insert_page_at(target_page, item)

    def _append_page(self, item: E) -> None:
        updated_items = list(self._current_items)
        updated_items.append(item)
        self._set_items_without_lock(updated_items)

        last_position = len(updated_items) - 1
        logger.debug("[%s] appended page %d", self.name, last_position)
        self.target_page = last_position
        self.set_scroll_to_page(last_position)

    def _insert_page_at(self, target_page: int, item: E) -> None:
        updated_items = list(self._current_items)
        updated_items.insert(target_page, item)
        self._set_items_without_lock(updated_items)
        logger.debug("[%s] inserted page %d", self.name, target_page)

        # Stay on the page that was just shifted right, then slide back onto
        # the new page once the widget has caught up.
        self.next_scroll_to_page = target_page
        self.target_page = target_page + 1
        self.focus_page = target_page + 1

    def apply_next_scroll_to_page(self) -> None:
        page = self.next_scroll_to_page
        if page is None:
            return
        self.next_scroll_to_page = None
        self.set_scroll_to_page(page)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def slide_to_first(self) -> None:
        self.set_scroll_to_page(0)

    def slide_to_previous(self, page: Optional[int] = None) -> None:
        if page is None:
            with untrack():
                page = self.target_page
            if page is None:
                return
        self.set_scroll_to_page(self.previous_page_index(page))

    def slide_to_next(self, page: int) -> int:
        next_page = self.next_page_index(page)
        self.set_scroll_to_page(next_page)
        return next_page

    def next_page_index(self, page: int) -> int:
        return paging.next_page_index(page, len(self._current_items))

    def previous_page_index(self, page: int) -> int:
        return paging.previous_page_index(page, len(self._current_items))

    def is_first_page(self, page: int) -> bool:
        return paging.is_first_page(page)

    def is_last_page(self, page: int) -> bool:
        return paging.is_last_page(page, len(self._current_items))

    def last_page_index(self) -> int:
        return paging.last_page_index(len(self._current_items))

    # ------------------------------------------------------------------
    # Page signals
    # ------------------------------------------------------------------

    def get_settled_page(self) -> Optional[int]:
        return self.settled_page

    def declare_settled_page(self, page: int) -> None:
        with batch():
            self.settled_page = page
            self.target_page = page

    def set_scroll_to_page(self, page: int) -> None:
        logger.debug("[%s] scroll to page %d", self.name, page)
        self.scroll_to_page = page

    def clear_scroll_to_page(self) -> None:
        self.scroll_to_page = None

    def set_focus_page(self, page: int) -> None:
        self.focus_page = page

    def clear_focus_page(self, page: int) -> None:
        # A newer focus request replaced this one
        with untrack():
            if page != self.focus_page:
                return
        self.focus_page = None

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get_item(self, page: int) -> E:
        if page < 0:
            raise IndexError(f"page index out of range: {page}")
        return self._current_items[page]

    def get_item_or_none(self, page: int) -> Optional[E]:
        if 0 <= page < len(self._current_items):
            return self._current_items[page]
        return None

    def get_items(self) -> list[E]:
        return list(self._current_items)

    async def set_items(self, items: Iterable[E]) -> None:
        async with self._lock:
            self._set_items_without_lock(list(items))

    async def update_items(self, update: Callable[[list[E]], Iterable[E]]) -> list[E]:
        async with self._lock:
            updated_items = list(update(list(self._current_items)))
            self._set_items_without_lock(updated_items)
            return list(updated_items)

    def _set_items_without_lock(self, items: list[E]) -> None:
        self._current_items = items
        self.items = list(items)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def has_pending_work(self) -> bool:
        """Whether a task, command or deferred step is still outstanding."""
        with untrack():
            return (
                len(self._tasks) > 0
                or self.pending_item_to_delete is not None
                or self.next_scroll_to_page is not None
                or self.scroll_to_page is not None
                or self.focus_page is not None
            )

    def dispose(self) -> None:
        super().dispose()
        self._tasks.cancel_all()

    def _launch(self, coroutine: Coroutine[Any, Any, None], operation: str) -> asyncio.Task[None]:
        return self._tasks.create(coroutine, name=f"{self.name}.{operation}")
