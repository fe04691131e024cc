"""
Wrap-aware page index arithmetic.

Moving past the last page wraps to the first one. Moving before the first page
does not wrap to the last page: it lands one past the end, on the slot a page
inserted at the front will shift into.
"""


def last_page_index(size: int) -> int:
    return size - 1


def is_first_page(page: int) -> bool:
    return page == 0


def is_last_page(page: int, size: int) -> bool:
    return page >= last_page_index(size)


def next_page_index(page: int, size: int) -> int:
    """Index after `page`, or 0 when `page` is the last page."""
    return 0 if is_last_page(page, size) else page + 1


def previous_page_index(page: int, size: int) -> int:
    """Index before `page`, or `size` when `page` is the first page."""
    return size if is_first_page(page) else page - 1
