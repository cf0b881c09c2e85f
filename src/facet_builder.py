"""
Facet builder that turns a tagged item collection into listing artifacts.

For each configured item type it produces:
- listing pages (one per filter combination and sort order)
- redirects for truncated search URLs
- the attribute domain snapshot
- the facet UI for the unfiltered listing

Item types with a category_dir get the same four artifacts again for
each category's subset, under /{category_dir}/{slug}.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from attribute_domain import (
    build_display_lookup,
    ensure_item_sequence,
    get_all_filter_attributes,
    get_category_labels,
    get_items_by_category,
)
from build_cache import BuildCache
from combination_generator import build_item_lookup, generate_combinations
from filter_ui import build_filter_ui, describe_filters, path_counts
from path_codec import build_search_url
from redirect_generator import generate_filter_redirects
from sort_expander import build_pages


logger = logging.getLogger(__name__)


@dataclass
class ItemTypeConfig:
    """One faceted listing, e.g. products under /products."""

    tag: str
    permalink_dir: str
    items_key: str = "items"
    title: str = ""
    category_dir: Optional[str] = None
    category: Optional[str] = None

    @property
    def base_url(self) -> str:
        return "/" + self.permalink_dir.strip("/")

    @property
    def search_url(self) -> str:
        return f"{self.base_url}/search"

    @property
    def scope(self) -> str:
        """Cache scope: the tag, or "tag:category" for a category subset."""
        if self.category is None:
            return self.tag
        return f"{self.tag}:{self.category}"

    def for_category(self, category_slug: str, label: str = "") -> "ItemTypeConfig":
        """
        Listing config for one category's subset of this item type.

        Raises:
            ValueError: If the item type has no category_dir
        """
        if not self.category_dir:
            raise ValueError(f"Item type '{self.tag}' has no category_dir")

        return replace(
            self,
            permalink_dir=f"{self.category_dir.strip('/')}/{category_slug}",
            title=label or category_slug,
            category_dir=None,
            category=category_slug,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemTypeConfig":
        """
        Build from an item_types entry in config.yaml.

        Raises:
            KeyError: If tag is missing
        """
        if "tag" not in data:
            raise KeyError(f"item_types entry is missing 'tag': {data}")

        tag = data["tag"]
        return cls(
            tag=tag,
            permalink_dir=data.get("permalink_dir", tag),
            items_key=data.get("items_key", tag),
            title=data.get("title", tag.replace("-", " ").title()),
            category_dir=data.get("category_dir"),
        )


@dataclass
class FacetArtifacts:
    """Everything the site generator needs for one listing."""

    item_type: ItemTypeConfig
    pages: List[Dict[str, Any]] = field(default_factory=list)
    redirects: List[Dict[str, str]] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)
    listing_ui: Dict[str, Any] = field(default_factory=dict)
    items: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return len(self.items)


class FacetBuilder:
    """
    Runs the facet engine against a content repository.

    The repository only needs get_items_by_tag(tag). Every derived value
    is memoized in the BuildCache under the collection's id, so the
    per-artifact methods can be called in any order and any number of
    times without recomputing. A category subset is its own collection
    with its own id.
    """

    def __init__(self, repository: Any, cache: Optional[BuildCache] = None):
        """
        Initialize facet builder.

        Args:
            repository: Object exposing get_items_by_tag(tag)
            cache: Build-scoped cache; a fresh one is created if omitted
        """
        self.repository = repository
        self.cache = cache if cache is not None else BuildCache()

    def _cached(self, tag: str, category: Optional[str], name: str, compute):
        scope = tag if category is None else f"{tag}:{category}"
        return self.cache.get_or_compute(self.cache.collection_id(scope), name, compute)

    def items_for(self, tag: str, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        The tagged collection (or one category of it), fetched once per build.

        Raises:
            TypeError: If the repository returns something that isn't a
                sequence of item mappings
        """
        def fetch():
            if category is not None:
                return get_items_by_category(self.items_for(tag), category)

            items = self.repository.get_items_by_tag(tag)
            if items is None:
                return []
            ensure_item_sequence(items)
            for item in items:
                if not isinstance(item, dict):
                    raise TypeError(
                        f"Item in '{tag}' must be a mapping, got {type(item).__name__}"
                    )
            return list(items)

        return self._cached(tag, category, "items", fetch)

    def filter_data_for(self, tag: str, category: Optional[str] = None) -> Dict[str, Any]:
        """Attribute domain plus display lookup for a collection."""
        def compute():
            items = self.items_for(tag, category)
            return {
                "attributes": get_all_filter_attributes(items),
                "display_lookup": build_display_lookup(items),
            }

        return self._cached(tag, category, "filter_data", compute)

    def lookup_for(self, tag: str, category: Optional[str] = None):
        return self._cached(
            tag, category, "lookup",
            lambda: build_item_lookup(self.items_for(tag, category))
        )

    def combinations_for(self, tag: str, category: Optional[str] = None) -> List[Dict[str, Any]]:
        def compute():
            return generate_combinations(
                self.items_for(tag, category),
                attributes=self.filter_data_for(tag, category)["attributes"],
                lookup=self.lookup_for(tag, category),
            )

        return self._cached(tag, category, "combinations", compute)

    def counts_for(self, tag: str, category: Optional[str] = None) -> Dict[str, int]:
        """Path -> match count for every combination, shared by all facet UIs."""
        return self._cached(
            tag, category, "counts",
            lambda: path_counts(self.combinations_for(tag, category))
        )

    def attributes_for(self, item_type: ItemTypeConfig) -> Dict[str, Any]:
        """Attribute domain snapshot for diagnostics and listing templates."""
        return self.filter_data_for(item_type.tag, item_type.category)

    def pages_for(self, item_type: ItemTypeConfig) -> List[Dict[str, Any]]:
        """
        Listing pages for every combination and sort order.

        Each page carries its own facet UI and the matching items under
        both "items" and the item type's items_key.
        """
        tag, category = item_type.tag, item_type.category

        def compute():
            filter_data = self.filter_data_for(tag, category)
            combinations = self.combinations_for(tag, category)
            counts = self.counts_for(tag, category)

            pages = build_pages(
                self.items_for(tag, category),
                combinations,
                filter_data["display_lookup"],
                self.lookup_for(tag, category),
            )

            for page in pages:
                page["url"] = build_search_url(
                    item_type.base_url, page["filters"], page["sort_key"]
                )
                page[item_type.items_key] = page["items"]
                page["title"] = describe_filters(
                    page["filters"], filter_data["display_lookup"]
                )
                page["filter_ui"] = build_filter_ui(
                    filter_data,
                    page["filters"],
                    combinations,
                    item_type.base_url,
                    sort_key=page["sort_key"],
                    current_count=page["count"],
                    counts=counts,
                )
                if category is not None:
                    page["category"] = category

            logger.info(f"Built {len(pages)} listing pages for '{item_type.scope}'")
            return pages

        return self._cached(tag, category, f"pages:{item_type.base_url}", compute)

    def redirects_for(self, item_type: ItemTypeConfig) -> List[Dict[str, str]]:
        tag, category = item_type.tag, item_type.category

        def compute():
            return generate_filter_redirects(
                list(self.filter_data_for(tag, category)["attributes"]),
                self.combinations_for(tag, category),
                item_type.search_url,
            )

        return self._cached(tag, category, f"redirects:{item_type.base_url}", compute)

    def listing_ui_for(self, item_type: ItemTypeConfig) -> Dict[str, Any]:
        """Facet UI for the unfiltered, default-sorted listing root."""
        tag, category = item_type.tag, item_type.category

        def compute():
            return build_filter_ui(
                self.filter_data_for(tag, category),
                None,
                self.combinations_for(tag, category),
                item_type.base_url,
                current_count=len(self.items_for(tag, category)),
                counts=self.counts_for(tag, category),
            )

        return self._cached(tag, category, f"listing_ui:{item_type.base_url}", compute)

    def categories_for(self, item_type: ItemTypeConfig) -> Dict[str, str]:
        """Category slug -> display label for every category in the collection."""
        return self._cached(
            item_type.tag, None, "categories",
            lambda: get_category_labels(self.items_for(item_type.tag))
        )

    def build(self, item_type: ItemTypeConfig) -> FacetArtifacts:
        """
        Produce all four artifacts for one item type.

        Args:
            item_type: Item type configuration

        Returns:
            FacetArtifacts for the site generator
        """
        logger.info(f"Building facets for '{item_type.scope}' at {item_type.base_url}")

        artifacts = FacetArtifacts(
            item_type=item_type,
            pages=self.pages_for(item_type),
            redirects=self.redirects_for(item_type),
            attributes=self.attributes_for(item_type),
            listing_ui=self.listing_ui_for(item_type),
            items=self.items_for(item_type.tag, item_type.category),
        )

        logger.info(
            f"'{item_type.scope}': {artifacts.total_items} items, "
            f"{len(artifacts.attributes['attributes'])} attributes, "
            f"{len(artifacts.pages)} pages, {len(artifacts.redirects)} redirects"
        )
        return artifacts

    def build_category(self, item_type: ItemTypeConfig, category_slug: str) -> FacetArtifacts:
        """
        Produce the four artifacts for one category of an item type.

        Raises:
            ValueError: If the item type has no category_dir
        """
        label = self.categories_for(item_type).get(category_slug, category_slug)
        return self.build(item_type.for_category(category_slug, label))

    def build_categories(self, item_type: ItemTypeConfig) -> List[FacetArtifacts]:
        """Category-scoped artifacts for every category; empty without a category_dir."""
        if not item_type.category_dir:
            return []

        return [
            self.build_category(item_type, slug)
            for slug in self.categories_for(item_type)
        ]
