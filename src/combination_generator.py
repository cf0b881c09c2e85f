"""
Enumeration of every filter combination that matches at least one item.

Each combination is a dict:
    {"filters": {"colour": "red", "size": "large"},
     "path": "colour/red/size/large",
     "count": 3}
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Set

from attribute_domain import ensure_item_sequence, get_all_filter_attributes
from normalizer import item_attributes, normalize_compare, normalize_filters
from path_codec import encode_path


logger = logging.getLogger(__name__)

# compare-key -> compare-value -> positions of items carrying that pair
ItemLookup = Dict[str, Dict[str, Set[int]]]


def build_item_lookup(items: Sequence[Dict[str, Any]]) -> ItemLookup:
    """
    Index item positions by normalized attribute key and value.

    Built once per collection so that counting a combination is a set
    intersection rather than a re-parse of every item.
    """
    ensure_item_sequence(items)

    lookup: ItemLookup = {}
    for position, item in enumerate(items):
        for key, value in item_attributes(item).items():
            by_value = lookup.setdefault(normalize_compare(key), {})
            by_value.setdefault(normalize_compare(value), set()).add(position)
    return lookup


def find_matching_positions(lookup: ItemLookup, filters: Dict[str, str]) -> List[int]:
    """
    Positions of items matching every filter (AND semantics).

    Args:
        lookup: Index from build_item_lookup
        filters: Non-empty filter mapping, compare-normalized

    Returns:
        Sorted item positions
    """
    matched: Optional[Set[int]] = None
    for key, value in filters.items():
        positions = lookup.get(key, {}).get(value)
        if not positions:
            return []
        matched = set(positions) if matched is None else matched & positions
        if not matched:
            return []
    return sorted(matched or ())


def count_matches(lookup: ItemLookup, filters: Dict[str, str], total_items: int) -> int:
    """
    Count items matching the filters; no filters matches everything.

    Args:
        lookup: Index from build_item_lookup
        filters: Filter mapping, compare-normalized
        total_items: Size of the collection
    """
    if not filters:
        return total_items
    return len(find_matching_positions(lookup, filters))


def item_matches_filters(item: Dict[str, Any], filters: Optional[Dict[str, str]]) -> bool:
    """
    True if the item carries every filtered key with an equal value.

    Comparison uses the compare form, so "Pet Friendly: Yes" matches
    {"pet-friendly": "yes"}.
    """
    if not filters:
        return True

    attrs = normalize_filters(item_attributes(item))
    return all(
        attrs.get(key) == value
        for key, value in normalize_filters(filters).items()
    )


def get_items_by_filters(
    items: Sequence[Dict[str, Any]],
    filters: Optional[Dict[str, str]],
    lookup: Optional[ItemLookup] = None
) -> List[Dict[str, Any]]:
    """
    Items matching the filters, in input order.

    Args:
        items: Full collection
        filters: Filter mapping (slug or raw form)
        lookup: Prebuilt index for the same collection, if available

    Returns:
        New list of the matching item records
    """
    ensure_item_sequence(items)

    if not filters:
        return list(items)

    if lookup is None:
        lookup = build_item_lookup(items)

    positions = find_matching_positions(lookup, normalize_filters(filters))
    return [items[position] for position in positions]


def generate_combinations(
    items: Sequence[Dict[str, Any]],
    attributes: Optional[Dict[str, List[str]]] = None,
    lookup: Optional[ItemLookup] = None
) -> List[Dict[str, Any]]:
    """
    Generate all non-empty filter combinations with matching items.

    Walks keys depth-first in sorted order, only ever extending a
    combination with keys after the last one added, so each key set is
    visited once. A combination with no matches is not extended: adding
    more AND constraints can't bring matches back.

    Args:
        items: Item collection
        attributes: Attribute domain for the same items, if already built
        lookup: Item index for the same items, if already built

    Returns:
        List of {"filters", "path", "count"} dicts, all with count > 0
    """
    ensure_item_sequence(items)

    if attributes is None:
        attributes = get_all_filter_attributes(items)
    keys = sorted(attributes)

    if not keys:
        return []

    if lookup is None:
        lookup = build_item_lookup(items)

    total_items = len(items)
    combinations: List[Dict[str, Any]] = []
    seen: Set[str] = set()

    def generate(current_filters: Dict[str, str], start_key_index: int) -> None:
        for index in range(start_key_index, len(keys)):
            key = keys[index]
            for value in attributes[key]:
                candidate = dict(current_filters)
                candidate[key] = value

                path = encode_path(candidate)
                if path in seen:
                    continue
                seen.add(path)

                count = count_matches(lookup, normalize_filters(candidate), total_items)
                if count == 0:
                    continue

                combinations.append({
                    "filters": candidate,
                    "path": path,
                    "count": count,
                })
                generate(candidate, index + 1)

    generate({}, 0)

    logger.info(
        f"Generated {len(combinations)} filter combinations "
        f"from {total_items} items across {len(keys)} attributes"
    )
    return combinations
