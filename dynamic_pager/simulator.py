import asyncio
import logging
from typing import Callable, Literal

from dynamic_pager.binder import SettledListener

logger = logging.getLogger(__name__)

PagerAction = Literal["animate", "jump"]


class SimulatedPager:
    """
    In-memory pager widget.

    Scroll targets are clamped to the available pages, as a real pager does.
    An animated scroll takes `frames` loop iterations before it settles; an
    instant jump settles right away. Listeners hear about a settled page only
    when it differs from the previous one.
    """

    def __init__(
        self,
        page_count: Callable[[], int],
        current_page: int = 0,
        frames: int = 1,
    ) -> None:
        self.page_count = page_count
        self.current_page = current_page
        self.settled_page = current_page
        self.frames = frames
        self.user_scroll_enabled = True
        self.history: list[tuple[PagerAction, int]] = []
        self._listeners: list[SettledListener] = []

    def add_settled_listener(self, listener: SettledListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _clamp(self, page: int) -> int:
        return max(0, min(page, self.page_count() - 1))

    async def animate_scroll_to_page(self, page: int) -> None:
        page = self._clamp(page)
        self.history.append(("animate", page))
        for _ in range(self.frames):
            await asyncio.sleep(0)
        self.current_page = page
        self._settle(page)

    async def scroll_to_page(self, page: int) -> None:
        page = self._clamp(page)
        self.history.append(("jump", page))
        self.current_page = page
        self._settle(page)

    def set_user_scroll_enabled(self, enabled: bool) -> None:
        self.user_scroll_enabled = enabled

    async def swipe_to_page(self, page: int) -> bool:
        """A user swipe. Ignored while user scrolling is disabled."""
        if not self.user_scroll_enabled:
            logger.debug("Swipe to page %d ignored, user scrolling is disabled", page)
            return False
        await self.animate_scroll_to_page(page)
        return True

    def _settle(self, page: int) -> None:
        if page == self.settled_page:
            return
        self.settled_page = page
        for listener in list(self._listeners):
            listener(page)
