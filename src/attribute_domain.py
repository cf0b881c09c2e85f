"""
Attribute domain and display lookup built from an item collection.
"""

import logging
from collections import defaultdict
from collections.abc import Sequence
from typing import Any, Dict, List

from normalizer import item_attributes, iter_attribute_pairs, normalize_slug


logger = logging.getLogger(__name__)


def ensure_item_sequence(items: Any) -> Sequence:
    """
    Reject anything that isn't an ordered item sequence.

    A wrong shape here would silently produce wrong facet data, so the
    build has to stop instead.

    Raises:
        TypeError: If items is not a list/tuple-like sequence
    """
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise TypeError(
            f"Expected a sequence of items, got {type(items).__name__}"
        )
    return items


def get_all_filter_attributes(items: Sequence[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Build the attribute domain for a collection.

    Returns:
        {"colour": ["blue", "red"], "size": ["large", "small"]}
        with keys and values sorted lexicographically
    """
    ensure_item_sequence(items)

    values_by_key = defaultdict(set)
    for item in items:
        for key, value in item_attributes(item).items():
            values_by_key[key].add(value)

    domain = {
        key: sorted(values_by_key[key])
        for key in sorted(values_by_key)
    }

    logger.debug(
        f"Attribute domain has {len(domain)} keys, "
        f"{sum(len(v) for v in domain.values())} values"
    )
    return domain


def build_display_lookup(items: Sequence[Dict[str, Any]]) -> Dict[str, str]:
    """
    Map slugs back to the first original text seen for them.

    {"pet-friendly": "Pet Friendly", "yes": "Yes"}

    Input order matters: the first item carrying a given slug decides its
    casing, later duplicates are ignored.
    """
    ensure_item_sequence(items)

    lookup: Dict[str, str] = {}
    for item in items:
        if not isinstance(item, dict):
            raise TypeError(f"Item must be a mapping, got {type(item).__name__}")

        for name, value in iter_attribute_pairs(item.get("filter_attributes")):
            for original in (name, value):
                slug = normalize_slug(original)
                if slug and slug not in lookup:
                    lookup[slug] = original

    return lookup


def display_text(display_lookup: Dict[str, str], slug: str) -> str:
    """Label for a slug, falling back to the slug itself."""
    return display_lookup.get(slug, slug)


def item_categories(item: Dict[str, Any]) -> List[str]:
    """
    Category slugs an item belongs to, in the order listed.

    Accepts a single string or a list under "categories"; blank entries
    are ignored.
    """
    raw = item.get("categories") or []
    if isinstance(raw, str):
        raw = [raw]

    slugs = []
    for category in raw:
        slug = normalize_slug(str(category))
        if slug and slug not in slugs:
            slugs.append(slug)
    return slugs


def get_category_labels(items: Sequence[Dict[str, Any]]) -> Dict[str, str]:
    """
    Every category used in a collection, slug -> first original text.

    {"outerwear": "Outerwear", "bags": "Bags"} with slugs sorted.
    """
    ensure_item_sequence(items)

    labels: Dict[str, str] = {}
    for item in items:
        raw = item.get("categories") or []
        for category in [raw] if isinstance(raw, str) else raw:
            text = str(category).strip()
            slug = normalize_slug(text)
            if slug and slug not in labels:
                labels[slug] = text

    return {slug: labels[slug] for slug in sorted(labels)}


def get_items_by_category(
    items: Sequence[Dict[str, Any]],
    category_slug: str
) -> List[Dict[str, Any]]:
    """Items listed under a category, in input order."""
    ensure_item_sequence(items)
    return [item for item in items if category_slug in item_categories(item)]
