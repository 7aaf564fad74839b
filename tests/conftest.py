"""Shared fixtures: a scripted catalog fetcher and small page builders."""

from decimal import Decimal

import pytest

from core.models import ItemGroup, Page, PageCursor, Variant


def make_page(items, has_next=False, end_cursor=None):
    """items: list of (item_name, [(variant_name, price), ...])."""
    groups = [
        ItemGroup(name, [Variant(vname, Decimal(str(price))) for vname, price in variants])
        for name, variants in items
    ]
    return Page(items=groups, cursor=PageCursor(has_next=has_next, end_cursor=end_cursor))


class ScriptedFetcher:
    """Replays pages (or raises exceptions) in order and records every call."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, search_term, page_size, cursor):
        self.calls.append((search_term, page_size, cursor))
        if not self.responses:
            raise AssertionError("fetch_page called more times than scripted")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


@pytest.fixture
def scripted():
    return ScriptedFetcher
