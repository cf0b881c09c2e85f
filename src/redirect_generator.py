"""
Redirects for truncated search URLs.

A URL ending in an attribute key with no value ("/products/search/size/")
has no page of its own. Each one is sent back to the page it extends.
"""

import logging
from typing import Any, Dict, List, Sequence


logger = logging.getLogger(__name__)


def generate_filter_redirects(
    attribute_keys: Sequence[str],
    combinations: Sequence[Dict[str, Any]],
    search_url: str
) -> List[Dict[str, str]]:
    """
    Build {"from", "to"} redirects for every dangling-key path.

    Args:
        attribute_keys: Keys of the attribute domain
        combinations: Valid combinations for the same collection
        search_url: Search root, e.g. "/products/search"

    Returns:
        Redirect dicts, each "from" appearing once
    """
    if not attribute_keys:
        return []

    search_url = search_url.rstrip("/")
    redirects: Dict[str, str] = {}

    for key in attribute_keys:
        redirects[f"{search_url}/{key}/"] = f"{search_url}/#content"

    for combo in combinations:
        for key in attribute_keys:
            if key in combo["filters"]:
                continue
            source = f"{search_url}/{combo['path']}/{key}/"
            redirects.setdefault(source, f"{search_url}/{combo['path']}/#content")

    logger.debug(f"Generated {len(redirects)} redirects under {search_url}")
    return [{"from": source, "to": target} for source, target in redirects.items()]
