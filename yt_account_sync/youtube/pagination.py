"""
Cursor pagination shared by every YouTube collection.

fetch_all() walks a collection page by page until Google stops returning
a nextPageToken or a safety cap is reached. Imports run while the user
waits, so accounts with thousands of subscriptions or huge playlists are
bounded to MAX_ITEMS, and a remote that keeps handing out cursors for
empty pages is bounded to MAX_PAGES requests.
"""

from typing import Callable, TypeVar

from yt_account_sync.core.logger import get_logger
from yt_account_sync.youtube.models import Page

logger = get_logger(__name__)

T = TypeVar("T")


MAX_ITEMS = 500

# Ten full pages reach MAX_ITEMS, the rest is slack for short pages
MAX_PAGES = 20


def fetch_all(
    page_request: Callable[[str | None], Page[T]],
    max_items: int = MAX_ITEMS,
    max_pages: int = MAX_PAGES
) -> list[T]:
    """
    Collect every item of a cursor-paginated collection.

    Args:
        page_request: Performs one request. Receives None for the first
                      page, then each next_cursor verbatim.
        max_items: Hard cap on the number of items returned.
        max_pages: Hard cap on the number of page requests.

    Returns:
        Items in remote order, at most max_items of them.

    Raises:
        Whatever page_request raises. Pages already fetched are discarded.
    """
    items: list[T] = []
    cursor: str | None = None
    pages = 0

    while True:
        page = page_request(cursor)
        pages += 1
        items.extend(page.items)
        cursor = page.next_cursor

        if cursor is None:
            break
        if len(items) >= max_items:
            logger.warning(f"Stopped after {max_items} items, remaining pages were not fetched")
            break
        if pages >= max_pages:
            logger.warning(f"Stopped after {max_pages} pages, remaining pages were not fetched")
            break

    logger.debug(f"Fetched {len(items)} items in {pages} page(s)")
    return items[:max_items]
