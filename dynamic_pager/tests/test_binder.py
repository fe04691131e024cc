import pytest

from dynamic_pager import PagerBinder, PagerController, SimulatedPager
from dynamic_pager.reactive import flush_effects


async def bound_pager(items, page=0, frames=1):
    controller = PagerController(initial_items=items)
    widget = SimulatedPager(
        lambda: len(controller.get_items()), current_page=page, frames=frames
    )
    binder = PagerBinder(controller, widget).bind()
    assert await binder.wait_until_idle()
    return controller, widget, binder


def shown(controller, widget):
    return controller.get_item_or_none(widget.current_page)


@pytest.mark.asyncio
async def test_bind_reports_the_current_page():
    controller, widget, binder = await bound_pager(["A", "B", "C"], page=2)
    assert binder.is_bound
    assert controller.settled_page == 2
    assert controller.target_page == 2


@pytest.mark.asyncio
async def test_insert_after_slides_to_new_page():
    controller, widget, binder = await bound_pager(["A", "B", "C"])

    controller.insert_after(0, "X")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["A", "X", "B", "C"]
    assert shown(controller, widget) == "X"
    assert widget.history == [("animate", 1)]
    assert controller.scroll_to_page is None
    assert controller.settled_page == 1


@pytest.mark.asyncio
async def test_delete_and_slide_to_next():
    controller, widget, binder = await bound_pager(["A", "B", "C"])

    controller.delete_and_slide_to_next(0, "A")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["B", "C"]
    assert shown(controller, widget) == "B"
    # Slide to "B", then jump back to its new index without animation
    assert widget.history == [("animate", 1), ("jump", 0)]
    assert widget.user_scroll_enabled
    assert controller.focus_page is None


@pytest.mark.asyncio
async def test_delete_and_slide_to_previous_from_first_page():
    controller, widget, binder = await bound_pager(["A", "B", "C"])

    controller.delete_and_slide_to_previous(0, "A")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["B", "C"]
    assert shown(controller, widget) == "C"


@pytest.mark.asyncio
async def test_delete_last_page_and_slide_to_next_wraps():
    controller, widget, binder = await bound_pager(["A", "B", "C"], page=2)

    controller.delete_and_slide_to_next(2, "C")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["A", "B"]
    assert shown(controller, widget) == "A"
    assert widget.history == [("animate", 0)]


@pytest.mark.asyncio
async def test_delete_sole_page():
    controller, widget, binder = await bound_pager(["A"])

    controller.delete_and_slide_to_next(0, "A")
    assert await binder.wait_until_idle()

    assert controller.get_items() == []
    assert widget.history == []


@pytest.mark.asyncio
async def test_user_scroll_is_locked_until_deletion_completes():
    controller, widget, binder = await bound_pager(["A", "B", "C"], frames=5)

    await controller.delete_and_slide_to_next(0, "A")
    flush_effects()

    assert not widget.user_scroll_enabled
    assert await widget.swipe_to_page(2) is False

    assert await binder.wait_until_idle()
    assert widget.user_scroll_enabled
    assert controller.get_items() == ["B", "C"]


@pytest.mark.asyncio
async def test_insert_before_shows_new_page():
    controller, widget, binder = await bound_pager(["A", "B", "C"], page=1)

    controller.insert_before(1, "X")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["A", "X", "B", "C"]
    assert shown(controller, widget) == "X"
    # Stay on "B" after it shifted right, then slide back to "X"
    assert widget.history == [("jump", 2), ("animate", 1)]


@pytest.mark.asyncio
async def test_insert_before_first_page():
    controller, widget, binder = await bound_pager(["A"])

    controller.insert_before(0, "X")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["X", "A"]
    assert shown(controller, widget) == "X"


@pytest.mark.asyncio
async def test_insert_before_last_page_appends_and_slides_to_it():
    controller, widget, binder = await bound_pager(["A", "B"], page=1)

    controller.insert_before(1, "X")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["A", "B", "X"]
    assert shown(controller, widget) == "X"


@pytest.mark.asyncio
async def test_sequence_of_operations_keeps_pager_in_sync():
    controller, widget, binder = await bound_pager(["A", "B", "C"])

    controller.insert_after(0, "X")
    assert await binder.wait_until_idle()
    controller.delete_and_slide_to_previous(widget.current_page, shown(controller, widget))
    assert await binder.wait_until_idle()
    controller.insert_before(widget.current_page, "Y")
    assert await binder.wait_until_idle()

    assert controller.get_items() == ["Y", "A", "B", "C"]
    assert shown(controller, widget) == "Y"
    assert controller.settled_page == widget.current_page


@pytest.mark.asyncio
async def test_unbind_detaches_the_widget():
    controller, widget, binder = await bound_pager(["A", "B", "C"])

    binder.unbind()
    assert not binder.is_bound

    controller.set_scroll_to_page(2)
    flush_effects()
    assert widget.history == []

    await widget.swipe_to_page(1)
    assert controller.settled_page == 0
