# core/aggregate.py
import os
from typing import Callable, List, Optional, Set

from core.errors import ConfigError, ProtocolError
from core.logger import get_logger
from core.models import MergedCatalog, Page, ResultRow
from fetchers import FETCHERS

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 250
PLATFORM = os.getenv("CATALOG_PLATFORM", "shopify").strip().lower()

FetchPage = Callable[[str, int, Optional[str]], Page]


def configured_page_size() -> int:
    raw = os.getenv("CATALOG_PAGE_SIZE", "").strip()
    if not raw:
        return DEFAULT_PAGE_SIZE
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"CATALOG_PAGE_SIZE must be an integer, got {raw!r}.") from e


def resolve_fetcher(platform: str = PLATFORM) -> FetchPage:
    fetcher = FETCHERS.get(platform)
    if not fetcher:
        raise ConfigError(f"No fetcher registered for platform '{platform}'.")
    return fetcher


def aggregate(
    search_term: str,
    fetch_page: Optional[FetchPage] = None,
    page_size: Optional[int] = None,
) -> Optional[MergedCatalog]:
    """
    Walk every page of the search and merge variants per item name.

    Returns None when any page comes back with zero items, even if earlier
    pages matched. Errors from fetch_page propagate unchanged and nothing
    merged so far is returned.
    """
    if page_size is None:
        page_size = configured_page_size()
    if page_size < 1:
        raise ConfigError(f"Page size must be positive, got {page_size}.")
    fetch_page = fetch_page or resolve_fetcher()

    catalog: MergedCatalog = {}
    cursor: Optional[str] = None
    seen_cursors: Set[str] = set()
    page_index = 0

    while True:
        page = fetch_page(search_term, page_size, cursor)

        if not page.items:
            # TODO: merge-then-filter instead of discarding earlier pages once
            # callers agree that a trailing empty page still means "matches found".
            logger.info(
                "Page %d for '%s' had no items; treating search as empty.",
                page_index, search_term,
            )
            return None

        for group in page.items:
            catalog.setdefault(group.name, []).extend(group.variants)

        logger.debug(
            "Page %d for '%s' merged %d items (%d distinct so far).",
            page_index, search_term, len(page.items), len(catalog),
        )

        if not page.cursor.has_next:
            break

        next_cursor = page.cursor.end_cursor
        if not next_cursor:
            raise ProtocolError(
                f"Page {page_index} reports a next page but no endCursor."
            )
        if next_cursor in seen_cursors:
            raise ProtocolError(
                f"Cursor {next_cursor!r} repeated on page {page_index}; pagination is not advancing."
            )

        seen_cursors.add(next_cursor)
        cursor = next_cursor
        page_index += 1

    logger.info(
        "Merged %d items across %d pages for '%s'.",
        len(catalog), page_index + 1, search_term,
    )
    return catalog


def project(catalog: MergedCatalog) -> List[ResultRow]:
    """
    Flatten the catalog into rows sorted by price.

    Two stable passes: each item's variants by price, then all rows by price.
    Rows that tie on price keep item order and each item's own variant order.
    """
    rows: List[ResultRow] = []
    for item_name, variants in catalog.items():
        for variant in sorted(variants, key=lambda v: v.price):
            rows.append(ResultRow(item_name, variant.name, variant.price))

    rows.sort(key=lambda r: r.variant_price)
    return rows


def aggregate_and_sort(
    search_term: str,
    fetch_page: Optional[FetchPage] = None,
    page_size: Optional[int] = None,
) -> Optional[List[ResultRow]]:
    catalog = aggregate(search_term, fetch_page=fetch_page, page_size=page_size)
    if catalog is None:
        return None
    return project(catalog)
