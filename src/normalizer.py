"""
Attribute normalization shared by every part of the facet engine.

Two forms are produced from free-text attribute names and values:
- compare form: lowercase, everything outside [a-z0-9] removed
- slug form: URL-safe hyphenated slug used in paths and display lookups
"""

import logging
import re
from functools import lru_cache
from typing import Any, Dict, List, Optional

from slugify import slugify


logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@lru_cache(maxsize=None)
def normalize_compare(text: str) -> str:
    """
    Normalize a string for equality comparison.

    "Pet-Friendly" and "pet friendly" both become "petfriendly".

    Args:
        text: Raw or slugified string

    Returns:
        Lowercase string containing only a-z and 0-9
    """
    return _NON_ALNUM.sub("", text.lower())


@lru_cache(maxsize=None)
def normalize_slug(text: str) -> str:
    """
    Convert text to the URL-safe slug used for path segments.

    Args:
        text: Attribute name or value

    Returns:
        Lowercase hyphenated slug
    """
    return slugify(text.strip(), lowercase=True)


def normalize_filters(filters: Dict[str, str]) -> Dict[str, str]:
    """Compare-normalize both keys and values of a filter mapping."""
    return {
        normalize_compare(key): normalize_compare(value)
        for key, value in filters.items()
    }


def iter_attribute_pairs(filter_attributes: Optional[List[Dict[str, Any]]]):
    """
    Yield stripped (name, value) pairs from a raw attribute list.

    Entries missing a name or value are skipped without error.

    Raises:
        TypeError: If filter_attributes is not a list
    """
    if not filter_attributes:
        return

    if not isinstance(filter_attributes, (list, tuple)):
        raise TypeError(
            f"filter_attributes must be a list, got {type(filter_attributes).__name__}"
        )

    for attr in filter_attributes:
        if not isinstance(attr, dict):
            logger.debug(f"Skipping non-mapping filter attribute: {attr!r}")
            continue

        name = attr.get("name")
        value = attr.get("value")
        if name is None or value is None:
            logger.debug(f"Skipping filter attribute without name or value: {attr!r}")
            continue

        name = str(name).strip()
        value = str(value).strip()
        if not name or not value:
            logger.debug(f"Skipping blank filter attribute: {attr!r}")
            continue

        yield name, value


def parse_filter_attributes(
    filter_attributes: Optional[List[Dict[str, Any]]]
) -> Dict[str, str]:
    """
    Parse raw item attributes into a slug mapping.

    [{"name": "Size", "value": "Small"}] => {"size": "small"}

    Args:
        filter_attributes: Raw attribute list from an item record

    Returns:
        Dict of slug(name) -> slug(value); a later duplicate name wins
    """
    parsed = {}
    for name, value in iter_attribute_pairs(filter_attributes):
        key_slug = normalize_slug(name)
        value_slug = normalize_slug(value)
        # Punctuation-only text slugifies to nothing and can't form a path
        if key_slug and value_slug:
            parsed[key_slug] = value_slug
    return parsed


def item_attributes(item: Dict[str, Any]) -> Dict[str, str]:
    """
    Slug attribute mapping for a single item record.

    Raises:
        TypeError: If the item is not a mapping
    """
    if not isinstance(item, dict):
        raise TypeError(f"Item must be a mapping, got {type(item).__name__}")

    return parse_filter_attributes(item.get("filter_attributes"))
