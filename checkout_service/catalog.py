"""
catalog.py — The fixed product catalog.

A Catalog is built once from its entries and never mutated afterwards. The
validator receives it as a constructor argument, so tests can price carts
against an alternate catalog.
"""

from types import MappingProxyType
from typing import Iterable, Optional

from .models import CatalogEntry


def normalize_name(name: str) -> str:
    """Case-folds and trims an item name for lookup."""
    return name.strip().casefold()


class Catalog:
    """
    Read-only collection of CatalogEntry objects keyed by canonical name.

    Besides the entries themselves it keeps a normalized-name -> canonical-name
    table, so "mini stick", " Mini Stick " and "Mini stick" all resolve to
    the same entry.
    """

    def __init__(self, entries: Iterable[CatalogEntry]):
        by_name = {}
        for entry in entries:
            if entry.item_name in by_name:
                raise ValueError(f"Duplicate catalog entry: {entry.item_name}")
            by_name[entry.item_name] = entry
        self._entries = MappingProxyType(by_name)
        self._lookup = MappingProxyType({normalize_name(n): n for n in by_name})

    def canonical_name(self, name: str) -> str:
        """Returns the canonical spelling of name, or name unchanged if it is unknown."""
        return self._lookup.get(normalize_name(name), name)

    def get(self, name: str) -> Optional[CatalogEntry]:
        return self._entries.get(name)

    def __contains__(self, name) -> bool:
        return name in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CATALOG = Catalog([
    CatalogEntry(item_name="Mini stick", unit_price_cents=500, max_flavours=1),
    CatalogEntry(item_name="2-flavour stick", unit_price_cents=800, max_flavours=2),
    CatalogEntry(item_name="3-flavour stick", unit_price_cents=1000, max_flavours=3),
    CatalogEntry(item_name="Small bag", unit_price_cents=1000, max_flavours=2),
    CatalogEntry(item_name="Large bag", unit_price_cents=1500, max_flavours=3),
])
