# fetchers/shopify.py
import os
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import requests

from core.errors import ConfigError, ProtocolError, TransportError
from core.logger import get_logger
from core.models import ItemGroup, Page, PageCursor, Variant

logger = get_logger(__name__)

API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2021-10")
DEFAULT_TIMEOUT = 30.0

SESSION = requests.Session()
SESSION.headers.update({"Content-Type": "application/json"})

# $first binds the products connection; the variant limit is filled in per request.
PRODUCTS_QUERY = """
query ($name: String!, $first: Int!, $after: String) {
  products(first: $first, query: $name, after: $after) {
    pageInfo {
      hasNextPage
      endCursor
    }
    edges {
      node {
        title
        variants(first: %d) {
          edges {
            node {
              title
              price
            }
          }
        }
      }
    }
  }
}
"""


def _credentials() -> tuple[str, str]:
    domain = os.getenv("SHOPIFY_STORE_DOMAIN", "").strip()
    token = os.getenv("SHOPIFY_STORE_ACCESS_TOKEN", "").strip()
    if not domain or not token:
        raise ConfigError(
            "SHOPIFY_STORE_DOMAIN and SHOPIFY_STORE_ACCESS_TOKEN must be set."
        )
    return domain, token


def request_timeout() -> float:
    raw = os.getenv("SHOPIFY_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as e:
        raise ConfigError(f"SHOPIFY_TIMEOUT must be a number, got {raw!r}.") from e
    if timeout <= 0:
        raise ConfigError(f"SHOPIFY_TIMEOUT must be positive, got {raw!r}.")
    return timeout


def graphql_url(domain: str) -> str:
    return f"https://{domain}/admin/api/{API_VERSION}/graphql.json"


def build_payload(search_term: str, page_size: int, cursor: Optional[str]) -> Dict[str, Any]:
    return {
        "query": PRODUCTS_QUERY % page_size,
        "variables": {
            "name": f"title:{search_term}*",
            "first": page_size,
            "after": cursor,
        },
    }


def _error_message(errors: Any) -> str:
    # GraphQL sends a list of {"message": ...}; REST-style auth failures send a plain string
    first = errors[0] if isinstance(errors, list) and errors else errors
    message = first.get("message") if isinstance(first, dict) else first
    return str(message) if message else "Unknown GraphQL error"


def _post(url: str, token: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    try:
        r = SESSION.post(
            url,
            json=payload,
            headers={"X-Shopify-Access-Token": token},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise TransportError(f"Request to {url} failed: {e}") from e

    if not 200 <= r.status_code < 300:
        logger.warning("Shopify returned status %s at %s.", r.status_code, url)
        message = f"Bad status code {r.status_code}"
        try:
            body = r.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("errors"):
            message = f"{message}: {_error_message(body['errors'])}"
        raise TransportError(message, status_code=r.status_code)

    try:
        data = r.json()
    except ValueError as e:
        raise TransportError(f"Response from {url} is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("Response body is not a JSON object.")

    errors = data.get("errors")
    if errors:
        raise TransportError(_error_message(errors))

    return data


def _parse_price(raw: Any, item_name: str) -> Decimal:
    try:
        price = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as e:
        raise ProtocolError(f"Invalid price {raw!r} for item '{item_name}'") from e
    # NaN and Infinity parse fine but cannot be ordered
    if not price.is_finite():
        raise ProtocolError(f"Invalid price {raw!r} for item '{item_name}'")
    return price


def _parse_variants(node: Dict[str, Any], item_name: str) -> List[Variant]:
    edges = (node.get("variants") or {}).get("edges")
    if not isinstance(edges, list):
        raise ProtocolError(f"Item '{item_name}' has no variant edges.")

    variants: List[Variant] = []
    for edge in edges:
        vnode = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(vnode, dict) or vnode.get("title") is None:
            raise ProtocolError(f"Malformed variant on item '{item_name}'.")
        variants.append(
            Variant(name=str(vnode["title"]), price=_parse_price(vnode.get("price"), item_name))
        )
    return variants


def parse_page(data: Dict[str, Any]) -> Page:
    """
    Turn a GraphQL products response into a Page.
    Raises ProtocolError when pageInfo or edges are missing.
    """
    products = (data.get("data") or {}).get("products")
    if not isinstance(products, dict):
        raise ProtocolError("Response has no data.products.")

    page_info = products.get("pageInfo")
    edges = products.get("edges")
    if not isinstance(page_info, dict) or not isinstance(edges, list):
        raise ProtocolError("Response is missing pageInfo or edges.")

    items: List[ItemGroup] = []
    for edge in edges:
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict) or node.get("title") is None:
            raise ProtocolError("Malformed product edge in response.")
        name = str(node["title"])
        items.append(ItemGroup(name=name, variants=_parse_variants(node, name)))

    cursor = PageCursor(
        has_next=bool(page_info.get("hasNextPage")),
        end_cursor=page_info.get("endCursor"),
    )
    return Page(items=items, cursor=cursor)


def fetch_page(search_term: str, page_size: int, cursor: Optional[str] = None) -> Page:
    """
    Fetch one page of products whose title starts with search_term.
    cursor is None for the first page, otherwise an endCursor from this search.
    """
    domain, token = _credentials()
    timeout = request_timeout()
    url = graphql_url(domain)
    logger.debug(
        "Fetching Shopify products for '%s' (first=%d, after=%s)",
        search_term, page_size, cursor,
    )
    data = _post(url, token, build_payload(search_term, page_size, cursor), timeout)
    page = parse_page(data)
    logger.debug(
        "Shopify page returned %d items (hasNextPage=%s)",
        len(page.items), page.cursor.has_next,
    )
    return page
