"""
Sort orders available on every listing page.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Sequence


DEFAULT_SORT = "default"


class SortOption(NamedTuple):
    key: str
    label: str


SORT_OPTIONS = (
    SortOption(DEFAULT_SORT, "Featured"),
    SortOption("name-asc", "Name (A-Z)"),
    SortOption("name-desc", "Name (Z-A)"),
    SortOption("price-asc", "Price (low to high)"),
    SortOption("price-desc", "Price (high to low)"),
)

SORT_KEYS = tuple(option.key for option in SORT_OPTIONS)


def is_sort_key(segment: str) -> bool:
    """True for a non-default sort key that may end a search path."""
    return segment in SORT_KEYS and segment != DEFAULT_SORT


def get_sort_option(key: str) -> SortOption:
    """
    Look up a sort option by key.

    Raises:
        KeyError: If the key is not a supported sort order
    """
    for option in SORT_OPTIONS:
        if option.key == key:
            return option
    raise KeyError(f"Unknown sort key: {key}")


def _price_value(item: Dict[str, Any]) -> Optional[float]:
    price = item.get("price")
    if isinstance(price, dict):
        price = price.get("value")
    if price is None or price == "":
        return None
    return float(price)


def _name_value(item: Dict[str, Any]) -> str:
    return str(item.get("title") or "").casefold()


def sort_items(items: Sequence[Dict[str, Any]], sort_key: str) -> List[Dict[str, Any]]:
    """
    Return a new list of items ordered by a sort key.

    "default" keeps input order. Name orders are case-insensitive. Items
    without a price go last under both price orders. Ties always fall back
    to input position, so every order is total and stable.

    Args:
        items: Items in input order
        sort_key: One of SORT_KEYS

    Returns:
        New sorted list; the input sequence is left untouched
    """
    get_sort_option(sort_key)
    ordered = list(items)

    if sort_key == DEFAULT_SORT:
        return ordered

    # list.sort is stable with reverse=True too, so ties keep input order
    descending = sort_key.endswith("-desc")

    if sort_key.startswith("name-"):
        ordered.sort(key=_name_value, reverse=descending)
        return ordered

    priced = [item for item in ordered if _price_value(item) is not None]
    unpriced = [item for item in ordered if _price_value(item) is None]
    priced.sort(key=_price_value, reverse=descending)
    return priced + unpriced
