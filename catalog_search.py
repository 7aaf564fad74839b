import argparse
from typing import List, Optional

from dotenv import load_dotenv

# Credentials and LOG_LEVEL may live in .env; load before the core modules read them.
load_dotenv()

from core.aggregate import DEFAULT_PAGE_SIZE, PLATFORM, aggregate_and_sort, resolve_fetcher  # noqa: E402
from core.errors import AggregationError  # noqa: E402
from core.logger import get_logger  # noqa: E402
from core.report import build_plaintext_report, no_results_message  # noqa: E402

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="List catalog items whose title starts with a name, cheapest variant first."
    )
    parser.add_argument("terms", nargs="*", help="Item name prefix (words are joined with spaces).")
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help=f"Products and variants requested per page (default CATALOG_PAGE_SIZE or {DEFAULT_PAGE_SIZE}).",
    )
    parser.add_argument(
        "--platform",
        default=PLATFORM,
        help=f"Catalog backend to query (default {PLATFORM}).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    search_term = " ".join(args.terms).strip()

    if not search_term:
        logger.error("Please provide an item name.")
        return 1

    try:
        fetcher = resolve_fetcher(args.platform.strip().lower())
        rows = aggregate_and_sort(search_term, fetch_page=fetcher, page_size=args.page_size)
    except AggregationError as e:
        logger.error("Error fetching items: %s", e)
        return 2

    if rows is None:
        print(no_results_message(search_term))
        return 0

    print(build_plaintext_report(rows), end="")
    return 0


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    try:
        run()
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        logger.exception("Fatal catalog search error: %s", e)
        raise SystemExit(2)
