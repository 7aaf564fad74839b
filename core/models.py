# core/models.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional


@dataclass
class Variant:
    """
    One priced option of a catalog item.
    Prices are kept as Decimal so ordering is numeric, never lexical.
    """
    name: str
    price: Decimal


@dataclass
class ItemGroup:
    """All variants of one item returned within a single page."""
    name: str
    variants: List[Variant] = field(default_factory=list)


@dataclass
class PageCursor:
    has_next: bool
    end_cursor: Optional[str] = None


@dataclass
class Page:
    items: List[ItemGroup]
    cursor: PageCursor


@dataclass
class ResultRow:
    item_name: str
    variant_name: str
    variant_price: Decimal


# item name -> variants accumulated across pages, in first-seen order
MergedCatalog = Dict[str, List[Variant]]
