"""
Canonical URL path encoding for filter states.

    {"size": "large", "colour": "red"}  <=>  "colour/red/size/large"

Keys are always written in sorted order so each filter state has exactly
one path. A non-default sort key may follow as the last segment.
"""

import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

from sort_options import DEFAULT_SORT, is_sort_key


# Same unreserved set as JavaScript's encodeURIComponent
_SAFE_CHARS = "!'()*"

_SEARCH_SEGMENT = re.compile(r"/search/(.+?)/?$")


def _encode_segment(text: str) -> str:
    return quote(text, safe=_SAFE_CHARS)


def encode_path(filters: Optional[Dict[str, str]]) -> str:
    """
    Convert a filter state into its canonical path.

    Args:
        filters: Filter key -> value mapping (may be empty or None)

    Returns:
        "key1/value1/key2/value2" with keys sorted, or "" for no filters
    """
    if not filters:
        return ""

    segments = []
    for key in sorted(filters):
        segments.append(_encode_segment(key))
        segments.append(_encode_segment(filters[key]))
    return "/".join(segments)


def _to_pairs(segments: List[str]) -> List[Tuple[str, str]]:
    # A trailing unpaired segment is dropped
    return [
        (segments[i], segments[i + 1])
        for i in range(0, len(segments) - 1, 2)
    ]


def decode_path(path: Optional[str]) -> Dict[str, str]:
    """
    Parse a canonical path back into a filter state.

    Empty segments are ignored and an odd trailing segment is dropped.

    Args:
        path: "colour/red/size/large"

    Returns:
        {"colour": "red", "size": "large"}
    """
    if not path:
        return {}

    segments = [segment for segment in path.split("/") if segment]
    filters = {}
    for key, value in _to_pairs(segments):
        key = unquote(key)
        value = unquote(value)
        if key and value:
            filters[key] = value
    return filters


def sorted_path(filters: Optional[Dict[str, str]], sort_key: str = DEFAULT_SORT) -> str:
    """
    Filter path with a non-default sort key appended.

    sorted_path({"colour": "red"}, "price-asc") => "colour/red/price-asc"
    sorted_path({}, "price-asc") => "price-asc"
    """
    path = encode_path(filters)
    if not sort_key or sort_key == DEFAULT_SORT:
        return path
    return f"{path}/{sort_key}" if path else sort_key


def build_search_url(
    base_url: str,
    filters: Optional[Dict[str, str]] = None,
    sort_key: str = DEFAULT_SORT
) -> str:
    """
    Full listing URL for a filter state and sort key.

    Args:
        base_url: Listing root such as "/products"

    Returns:
        "/products/search/colour/red/price-asc/" or "/products/" when there
        is nothing to encode
    """
    base_url = base_url.rstrip("/")
    search_part = sorted_path(filters, sort_key)
    if not search_part:
        return f"{base_url}/"
    return f"{base_url}/search/{search_part}/"


def parse_search_path(pathname: str) -> Tuple[Dict[str, str], str]:
    """
    Recover the filter state and sort key from a full URL path.

    "/products/search/colour/red/price-asc/" => ({"colour": "red"}, "price-asc")

    Returns:
        (filters, sort_key); ({}, "default") when there is no search part
    """
    match = _SEARCH_SEGMENT.search(pathname or "")
    if not match:
        return {}, DEFAULT_SORT

    segments = [segment for segment in match.group(1).split("/") if segment]
    sort_key = DEFAULT_SORT
    # Filter segments come in pairs, so only an odd tail can be a sort key
    if len(segments) % 2 == 1 and is_sort_key(segments[-1]):
        sort_key = segments.pop()

    return decode_path("/".join(segments)), sort_key
