# fetchers/__init__.py
from . import shopify

FETCHERS = {
    "shopify": shopify.fetch_page,
}
