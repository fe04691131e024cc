"""
Glue between a `PagerController` and the pager widget that renders it.

The controller only publishes commands. The binder carries them out on the
widget: it animates to `scroll_to_page`, jumps to `focus_page`, mirrors the
user scroll lock, and reports every page the widget settles on back to the
controller.
"""

import logging
from typing import Any, Callable, Optional, Protocol

from dynamic_pager.controller import PagerController
from dynamic_pager.reactive import Effect, untrack
from dynamic_pager.scheduling import TaskRegistry, wait_for

logger = logging.getLogger(__name__)

SettledListener = Callable[[int], None]


class PagerWidget(Protocol):
    @property
    def current_page(self) -> int: ...

    async def animate_scroll_to_page(self, page: int) -> None: ...

    async def scroll_to_page(self, page: int) -> None: ...

    def set_user_scroll_enabled(self, enabled: bool) -> None: ...

    def add_settled_listener(self, listener: SettledListener) -> Callable[[], None]:
        """Register `listener` for settled pages. Returns a function removing it."""
        ...


class PagerBinder:
    def __init__(self, controller: PagerController[Any], widget: PagerWidget) -> None:
        self.controller = controller
        self.widget = widget
        self._tasks = TaskRegistry(name=f"{controller.name}.binder")
        self._effects: list[Effect] = []
        self._remove_listener: Optional[Callable[[], None]] = None

    @property
    def is_bound(self) -> bool:
        return self._remove_listener is not None

    def bind(self) -> "PagerBinder":
        if self.is_bound:
            logger.warning("PagerBinder.bind() called on an already bound pager")
            return self

        self._remove_listener = self.widget.add_settled_listener(self.on_page_settled)
        name = self.controller.name
        with untrack():
            self._effects = [
                Effect(self._consume_scroll_to_page, name=f"{name}.binder.scroll_to_page"),
                Effect(self._consume_focus_page, name=f"{name}.binder.focus_page"),
                Effect(self._sync_user_scroll, name=f"{name}.binder.user_scroll"),
            ]
        self.controller.declare_settled_page(self.widget.current_page)
        return self

    def unbind(self) -> None:
        for effect in self._effects:
            effect.dispose()
        self._effects = []
        self._tasks.cancel_all()
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    def on_page_settled(self, page: int) -> None:
        logger.debug("[%s] widget settled on page %d", self.controller.name, page)
        self.controller.declare_settled_page(page)

    def _consume_scroll_to_page(self):
        page = self.controller.scroll_to_page
        if page is None:
            return

        task = self._tasks.create(
            self._animate_to(page), name=f"{self.controller.name}.animate:{page}"
        )

        def cleanup():
            # A newer scroll command supersedes this animation
            if not task.done():
                task.cancel()

        return cleanup

    async def _animate_to(self, page: int) -> None:
        await self.widget.animate_scroll_to_page(page)
        # Only clear the command this animation was started for
        if self.controller.scroll_to_page == page:
            self.controller.clear_scroll_to_page()

    def _consume_focus_page(self):
        page = self.controller.focus_page
        if page is None:
            return
        self._tasks.create(
            self._jump_to(page), name=f"{self.controller.name}.focus:{page}"
        )

    async def _jump_to(self, page: int) -> None:
        await self.widget.scroll_to_page(page)
        self.controller.clear_focus_page(page)

    def _sync_user_scroll(self):
        self.widget.set_user_scroll_enabled(self.controller.scroll_by_user_enabled)

    def is_idle(self) -> bool:
        return len(self._tasks) == 0 and not self.controller.has_pending_work()

    async def wait_until_idle(self, timeout: float = 1.0) -> bool:
        """Wait until every command has been carried out and no step is pending."""
        return await wait_for(self.is_idle, timeout=timeout)
