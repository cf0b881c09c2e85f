"""
Facet navigation view-models for listing templates.

Everything is precomputed so templates only loop over plain dicts:
active filter chips with remove links, one group per attribute with the
options that lead to a real page, and the sort selector.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from attribute_domain import display_text
from path_codec import build_search_url, encode_path
from sort_options import DEFAULT_SORT, SORT_OPTIONS


logger = logging.getLogger(__name__)


def build_filter_description(
    filters: Dict[str, str],
    display_lookup: Dict[str, str]
) -> List[Dict[str, str]]:
    """
    Human-readable labels for an active filter state.

    {"size": "compact"} => [{"key": "Size", "value": "Compact"}]
    """
    return [
        {
            "key": display_text(display_lookup, key),
            "value": display_text(display_lookup, filters[key]),
        }
        for key in sorted(filters)
    ]


def describe_filters(filters: Dict[str, str], display_lookup: Dict[str, str]) -> str:
    """Flat description for page titles: "Size: Compact, Type: Pro"."""
    return ", ".join(
        f"{part['key']}: {part['value']}"
        for part in build_filter_description(filters, display_lookup)
    )


def path_counts(combinations: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """
    Map each valid filter path to its match count.

    Sort variants share their combination's path and count, so only
    default-sort entries are read.
    """
    counts = {}
    for combo in combinations:
        if combo.get("sort_key", DEFAULT_SORT) != DEFAULT_SORT:
            continue
        if combo.get("filters"):
            counts[combo["path"]] = combo["count"]
    return counts


def _is_option_visible(
    is_active: bool,
    key_is_active: bool,
    hypothetical_count: Optional[int],
    current_count: Optional[int]
) -> bool:
    if is_active:
        return True
    if not hypothetical_count:
        return False
    if key_is_active:
        # Swapping the value within a group is always a real change
        return True
    # Adding a new group must narrow the results, otherwise it is a no-op
    return current_count is None or hypothetical_count != current_count


def build_filter_ui(
    filter_data: Dict[str, Any],
    current_filters: Optional[Dict[str, str]],
    combinations: Iterable[Dict[str, Any]],
    base_url: str,
    sort_key: str = DEFAULT_SORT,
    current_count: Optional[int] = None,
    counts: Optional[Dict[str, int]] = None
) -> Dict[str, Any]:
    """
    Build the facet navigation model for one listing page.

    Args:
        filter_data: {"attributes": ..., "display_lookup": ...}
        current_filters: Active filter state (None or {} for the root)
        combinations: Valid combinations (or pages) with "path" and "count"
        base_url: Listing root, e.g. "/products"
        sort_key: Sort order of the current page, kept on every link
        current_count: Items shown on the current page; when None it is
            read from the combinations, and the root listing then shows
            every feasible option
        counts: Precomputed path_counts(combinations); pass it when
            building the UI for many pages of one collection

    Returns:
        Dict ready for template rendering; {"has_filters": False} when the
        collection has no attributes at all
    """
    attributes = filter_data["attributes"]
    display = filter_data["display_lookup"]

    if not attributes:
        return {"has_filters": False}

    if counts is None:
        counts = path_counts(combinations)
    filters = dict(current_filters or {})

    if current_count is None and filters:
        current_count = counts.get(encode_path(filters))

    active_filters = []
    for key in sorted(filters):
        remaining = {k: v for k, v in filters.items() if k != key}
        active_filters.append({
            "key": display_text(display, key),
            "value": display_text(display, filters[key]),
            "remove_url": build_search_url(base_url, remaining, sort_key) + "#content",
        })

    groups = []
    for attr_name in sorted(attributes):
        current_value = filters.get(attr_name)
        options = []

        for value in attributes[attr_name]:
            is_active = current_value == value
            hypothetical = dict(filters)
            hypothetical[attr_name] = value
            path = encode_path(hypothetical)
            hypothetical_count = counts.get(path)

            if not _is_option_visible(
                is_active,
                current_value is not None,
                hypothetical_count,
                current_count
            ):
                continue

            options.append({
                "value": display_text(display, value),
                "url": build_search_url(base_url, hypothetical, sort_key) + "#content",
                "active": is_active,
                "count": hypothetical_count or 0,
            })

        if not options:
            continue

        groups.append({
            "name": attr_name,
            "label": display_text(display, attr_name),
            "options": options,
        })

    sort_choices = [
        {
            "key": option.key,
            "label": option.label,
            "url": build_search_url(base_url, filters, option.key),
            "active": option.key == sort_key,
        }
        for option in SORT_OPTIONS
    ]

    return {
        "has_filters": len(groups) > 0,
        "has_active_filters": len(filters) > 0,
        "active_filters": active_filters,
        "clear_all_url": build_search_url(base_url, {}, sort_key) + "#content",
        "groups": groups,
        "sort_options": sort_choices,
    }
