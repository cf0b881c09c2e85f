"""
Item sources for the build: local YAML/JSON files or a remote JSON feed.

Whatever the source, items end up in a ContentRepository that hands out
tagged collections in their original order.
"""

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import yaml


logger = logging.getLogger(__name__)

ITEM_FILE_SUFFIXES = (".yaml", ".yml", ".json")


class ContentRepository:
    """
    In-memory item store answering get_items_by_tag(tag).

    Input order is preserved: it decides default sort order and which
    casing of an attribute label is displayed.
    """

    def __init__(self, items: List[Dict[str, Any]]):
        """
        Initialize repository.

        Args:
            items: Normalized item dicts

        Raises:
            TypeError: If items is not a list of dicts
        """
        if not isinstance(items, list):
            raise TypeError(f"Expected a list of items, got {type(items).__name__}")
        self._items = items

    def __len__(self) -> int:
        return len(self._items)

    def get_items_by_tag(self, tag: str) -> List[Dict[str, Any]]:
        """
        Items carrying a tag, in input order.

        Returns a new list each call; the item records themselves are shared.
        """
        return [item for item in self._items if tag in (item.get("tags") or [])]

    def tags(self) -> List[str]:
        """Every tag in use, sorted."""
        found = set()
        for item in self._items:
            found.update(item.get("tags") or [])
        return sorted(found)


def normalize_item(raw: Dict[str, Any], default_id: str = "") -> Dict[str, Any]:
    """
    Normalize a raw item record to the structure the engine expects.

    Accepts a bare number or a {"value", "currency"} dict for price, and
    a single string or a list for tags and categories.

    Args:
        raw: Item as read from a file or feed
        default_id: Identifier used when the record has none

    Returns:
        Normalized item dict

    Raises:
        TypeError: If the record is not a mapping
    """
    if not isinstance(raw, dict):
        raise TypeError(f"Item record must be a mapping, got {type(raw).__name__}")

    price = raw.get("price")
    if isinstance(price, dict):
        price = {
            "value": float(price.get("value", 0)),
            "currency": price.get("currency", "USD"),
        }
    elif price is not None and price != "":
        price = {"value": float(price), "currency": "USD"}
    else:
        price = None

    tags = raw.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]

    categories = raw.get("categories") or []
    if isinstance(categories, str):
        categories = [categories]

    return {
        "item_id": str(raw.get("item_id") or raw.get("id") or default_id),
        "title": raw.get("title", ""),
        "price": price,
        "order": raw.get("order"),
        "date": raw.get("date"),
        "tags": list(tags),
        "categories": list(categories),
        "url": raw.get("url", ""),
        "image": raw.get("image", ""),
        "filter_attributes": raw.get("filter_attributes") or [],
    }


def load_items_from_directory(content_dir: Path) -> List[Dict[str, Any]]:
    """
    Load item records from YAML/JSON files.

    Files are read in sorted name order; each holds one item or a list of
    items.

    Args:
        content_dir: Directory containing item files

    Returns:
        List of normalized item dicts

    Raises:
        FileNotFoundError: If the directory doesn't exist
        yaml.YAMLError: If a file is not valid YAML/JSON
    """
    content_dir = Path(content_dir)
    if not content_dir.is_dir():
        raise FileNotFoundError(f"Content directory not found: {content_dir}")

    items = []
    for path in sorted(content_dir.iterdir()):
        if path.suffix.lower() not in ITEM_FILE_SUFFIXES:
            continue

        with open(path, "r", encoding="utf-8") as f:
            # JSON is a subset of YAML, so one loader covers both
            data = yaml.safe_load(f)

        if data is None:
            logger.warning(f"Skipping empty content file: {path.name}")
            continue

        records = data if isinstance(data, list) else [data]
        for index, record in enumerate(records):
            items.append(normalize_item(record, default_id=f"{path.stem}-{index}"))

        logger.debug(f"Loaded {len(records)} item(s) from {path.name}")

    logger.info(f"Loaded {len(items)} items from {content_dir}")
    return items


class FeedClient:
    """
    Client for a paged JSON item feed.

    Expects responses shaped {"items": [...], "total": N} and pages with
    offset/limit query parameters. Each page is cached to disk for
    cache_ttl_minutes.
    """

    def __init__(
        self,
        feed_url: str,
        cache_dir: Path = Path(".cache"),
        cache_ttl_minutes: int = 15,
        page_size: int = 100,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize feed client.

        Args:
            feed_url: URL of the item feed
            cache_dir: Directory for cached feed pages
            cache_ttl_minutes: How long cached pages stay fresh
            page_size: Items requested per page
            headers: Extra request headers (e.g. an API token)
            transport: Optional httpx transport, used in tests
        """
        self.feed_url = feed_url
        self.cache_dir = Path(cache_dir)
        self.cache_ttl = timedelta(minutes=cache_ttl_minutes)
        self.page_size = page_size
        self.headers = headers or {}
        self.transport = transport

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.requests_made = 0

    def _get_cache_key(self, offset: int) -> str:
        safe_url = "".join(c if c.isalnum() else "_" for c in self.feed_url)
        return f"feed_{safe_url}_offset{offset}.json"

    def _get_cached_response(self, cache_key: str) -> Optional[Dict[str, Any]]:
        cache_file = self.cache_dir / cache_key

        if not cache_file.exists():
            return None

        modified_time = datetime.fromtimestamp(cache_file.stat().st_mtime)
        if datetime.now() - modified_time > self.cache_ttl:
            logger.debug(f"Cache expired for {cache_key}")
            return None

        logger.debug(f"Using cached response for {cache_key}")
        with open(cache_file, "r", encoding="utf-8") as f:
            return json.load(f)

    def _save_cache(self, cache_key: str, data: Dict[str, Any]) -> None:
        cache_file = self.cache_dir / cache_key
        with open(cache_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved response to cache: {cache_key}")

    def _fetch_page(self, offset: int, force_refresh: bool = False) -> Dict[str, Any]:
        """
        Fetch one page of the feed.

        Raises:
            httpx.HTTPError: If the request fails
        """
        cache_key = self._get_cache_key(offset)

        if not force_refresh:
            cached = self._get_cached_response(cache_key)
            if cached:
                return cached

        params = {"offset": offset, "limit": self.page_size}
        logger.info(f"Fetching feed page (offset={offset}, limit={self.page_size})")

        with httpx.Client(timeout=30.0, transport=self.transport) as client:
            response = client.get(self.feed_url, headers=self.headers, params=params)
            response.raise_for_status()

            data = response.json()
            self.requests_made += 1
            self._save_cache(cache_key, data)
            return data

    def fetch_items(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        """
        Fetch every item in the feed, following pagination.

        Returns:
            List of normalized item dicts

        Raises:
            httpx.HTTPError: If any page fails
        """
        all_items: List[Dict[str, Any]] = []
        offset = 0
        total_items = None

        while True:
            try:
                response = self._fetch_page(offset, force_refresh=force_refresh)
            except httpx.HTTPError as e:
                # A partial catalog would publish wrong facet counts
                logger.error(f"Feed error at offset {offset} after {len(all_items)} items: {e}")
                raise

            if total_items is None:
                total_items = response.get("total", 0)
                logger.info(f"Feed reports {total_items} total items")

            records = response.get("items", [])
            if not records:
                break

            for index, record in enumerate(records):
                all_items.append(
                    normalize_item(record, default_id=f"feed-{offset + index}")
                )

            offset += len(records)
            if offset >= total_items:
                break

        logger.info(f"Fetched {len(all_items)} items from feed")
        return all_items
