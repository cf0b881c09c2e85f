"""
Expansion of filter combinations into one page per sort order.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from combination_generator import ItemLookup, get_items_by_filters
from filter_ui import build_filter_description
from path_codec import sorted_path
from sort_options import DEFAULT_SORT, SORT_OPTIONS, sort_items


logger = logging.getLogger(__name__)


def expand_with_sort_variants(combinations: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    One entry per combination per sort option.

    The default sort keeps the bare combination path; the others get the
    sort key appended ("colour/red/price-asc").
    """
    return [
        {
            "filters": combo["filters"],
            "path": sorted_path(combo["filters"], option.key),
            "count": combo["count"],
            "sort_key": option.key,
        }
        for combo in combinations
        for option in SORT_OPTIONS
    ]


def generate_sort_only_pages(total_count: int) -> List[Dict[str, Any]]:
    """
    Unfiltered listing entries for every non-default sort order.

    Args:
        total_count: Number of items in the whole collection

    Returns:
        Entries with empty filters; none at all for an empty collection
    """
    if total_count <= 0:
        return []

    return [
        {
            "filters": {},
            "path": option.key,
            "count": total_count,
            "sort_key": option.key,
        }
        for option in SORT_OPTIONS
        if option.key != DEFAULT_SORT
    ]


def build_pages(
    items: Sequence[Dict[str, Any]],
    combinations: Sequence[Dict[str, Any]],
    display_lookup: Dict[str, str],
    lookup: Optional[ItemLookup] = None
) -> List[Dict[str, Any]]:
    """
    Materialize listing pages with their sorted item lists.

    Matching items are looked up once per combination and then ordered for
    each sort key. Returns new lists referencing the caller's item records;
    nothing is copied or modified.

    Args:
        items: Full collection in input order
        combinations: Output of generate_combinations
        display_lookup: Slug -> display text for filter descriptions
        lookup: Item index for the same collection, if already built

    Returns:
        Page dicts: filters, path, count, sort_key, items, filter_description
    """
    pages = []

    for combo in combinations:
        matched = get_items_by_filters(items, combo["filters"], lookup)
        description = build_filter_description(combo["filters"], display_lookup)

        for option in SORT_OPTIONS:
            pages.append({
                "filters": combo["filters"],
                "path": sorted_path(combo["filters"], option.key),
                "count": combo["count"],
                "sort_key": option.key,
                "items": sort_items(matched, option.key),
                "filter_description": description,
            })

    for entry in generate_sort_only_pages(len(items)):
        pages.append({
            **entry,
            "items": sort_items(items, entry["sort_key"]),
            "filter_description": [],
        })

    logger.info(f"Expanded {len(combinations)} combinations into {len(pages)} pages")
    return pages
