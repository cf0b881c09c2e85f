"""Tests for the per-build cache and the facet builder."""

import pytest

import facet_builder
import filter_ui
from build_cache import BuildCache
from conftest import filter_attr, make_item
from content_source import ContentRepository
from facet_builder import FacetArtifacts, FacetBuilder, ItemTypeConfig


class CountingRepository:
    """Repository double that records every lookup."""

    def __init__(self, items):
        self.repository = ContentRepository(items)
        self.calls = []

    def get_items_by_tag(self, tag):
        self.calls.append(tag)
        return self.repository.get_items_by_tag(tag)


@pytest.fixture
def products():
    return ItemTypeConfig(tag="products", permalink_dir="products", items_key="products")


class TestBuildCache:

    def test_computes_once_per_key(self):
        cache = BuildCache(generation=7)
        calls = []

        def compute():
            calls.append(1)
            return ["value"]

        first = cache.get_or_compute("products@7", "attributes", compute)
        second = cache.get_or_compute("products@7", "attributes", compute)

        assert first is second
        assert len(calls) == 1
        assert cache.stats() == {"entries": 1, "hits": 1, "misses": 1}

    def test_keys_are_independent(self):
        cache = BuildCache()
        cache.get_or_compute("a@0", "x", lambda: 1)
        cache.get_or_compute("b@0", "x", lambda: 2)
        assert cache.get_or_compute("b@0", "x", lambda: 3) == 2
        assert len(cache) == 2
        assert ("a@0", "x") in cache

    def test_collection_id_includes_generation(self):
        assert BuildCache(generation=3).collection_id("products") == "products@3"

    def test_clear_starts_new_generation(self):
        cache = BuildCache(generation=1)
        cache.get_or_compute("a@1", "x", lambda: 1)
        cache.clear()
        assert len(cache) == 0
        assert cache.generation == 2


class TestItemTypeConfig:

    def test_urls(self, products):
        assert products.base_url == "/products"
        assert products.search_url == "/products/search"

    def test_from_dict_defaults(self):
        config = ItemTypeConfig.from_dict({"tag": "holiday-lets"})
        assert config.permalink_dir == "holiday-lets"
        assert config.items_key == "holiday-lets"
        assert config.title == "Holiday Lets"

    def test_from_dict_requires_tag(self):
        with pytest.raises(KeyError):
            ItemTypeConfig.from_dict({"permalink_dir": "products"})


class TestFacetBuilder:

    def test_build_produces_all_artifacts(self, colour_size_items, products):
        builder = FacetBuilder(ContentRepository(colour_size_items))
        artifacts = builder.build(products)

        assert isinstance(artifacts, FacetArtifacts)
        assert artifacts.total_items == 3
        assert artifacts.attributes["attributes"] == {
            "colour": ["blue", "red"],
            "size": ["large", "small"],
        }
        # 7 combinations x 5 sort keys + 4 sort-only pages
        assert len(artifacts.pages) == 7 * 5 + 4
        assert len(artifacts.redirects) == 6
        assert artifacts.listing_ui["has_filters"]

    def test_pages_carry_urls_items_and_ui(self, colour_size_items, products):
        builder = FacetBuilder(ContentRepository(colour_size_items))
        pages = {page["url"]: page for page in builder.pages_for(products)}

        page = pages["/products/search/colour/red/price-asc/"]
        assert page["sort_key"] == "price-asc"
        assert page["count"] == 2
        assert [item["title"] for item in page["products"]] == ["Red Small", "Red Large"]
        assert page["products"] is page["items"]
        assert page["title"] == "colour: red"
        assert page["filter_ui"]["has_active_filters"]

        assert "/products/search/name-desc/" in pages

    def test_repository_queried_once_per_tag(self, colour_size_items, products):
        repository = CountingRepository(colour_size_items)
        builder = FacetBuilder(repository, BuildCache())

        builder.pages_for(products)
        builder.redirects_for(products)
        builder.attributes_for(products)
        builder.listing_ui_for(products)
        builder.build(products)

        assert repository.calls == ["products"]

    def test_combinations_computed_once(self, colour_size_items, products):
        cache = BuildCache(generation=1)
        builder = FacetBuilder(ContentRepository(colour_size_items), cache)

        first = builder.combinations_for("products")
        builder.build(products)
        assert builder.combinations_for("products") is first
        assert cache.stats()["hits"] > 0

    def test_separate_tags_are_separate_collections(self, colour_size_items, property_items):
        builder = FacetBuilder(ContentRepository(colour_size_items + property_items))
        properties = ItemTypeConfig(tag="properties", permalink_dir="properties")

        assert set(builder.attributes_for(properties)["attributes"]) == {"pet-friendly", "type"}
        assert builder.build(properties).total_items == 3

    def test_collection_without_attributes(self, products):
        builder = FacetBuilder(ContentRepository([
            {"title": "Plain", "tags": ["products"], "filter_attributes": []},
        ]))
        artifacts = builder.build(products)
        assert artifacts.listing_ui == {"has_filters": False}
        assert artifacts.redirects == []
        # Only the sort-only listings remain
        assert [page["path"] for page in artifacts.pages] == \
            ["name-asc", "name-desc", "price-asc", "price-desc"]

    def test_non_sequence_from_repository_fails(self, products):
        class BrokenRepository:
            def get_items_by_tag(self, tag):
                return {"not": "a list"}

        with pytest.raises(TypeError):
            FacetBuilder(BrokenRepository()).build(products)

    def test_non_mapping_item_fails(self, products):
        class BrokenRepository:
            def get_items_by_tag(self, tag):
                return ["just a string"]

        with pytest.raises(TypeError):
            FacetBuilder(BrokenRepository()).build(products)

    def test_does_not_mutate_repository_items(self, colour_size_items, products):
        snapshot = [dict(item) for item in colour_size_items]
        FacetBuilder(ContentRepository(colour_size_items)).build(products)
        assert colour_size_items == snapshot

    def test_path_counts_built_once_per_collection(self, colour_size_items, products, monkeypatch):
        calls = []
        original = filter_ui.path_counts

        def counting(combinations):
            calls.append(1)
            return original(combinations)

        def per_page(combinations):
            raise AssertionError("facet UI rebuilt the path counts")

        monkeypatch.setattr(facet_builder, "path_counts", counting)
        monkeypatch.setattr(filter_ui, "path_counts", per_page)

        artifacts = FacetBuilder(ContentRepository(colour_size_items)).build(products)

        assert len(artifacts.pages) == 39
        assert calls == [1]


@pytest.fixture
def categorised_items():
    return [
        make_item("Red Coat", filter_attr("colour", "red"), filter_attr("size", "large"),
                  price=30, categories=["Outerwear"]),
        make_item("Red Tote", filter_attr("colour", "red"), filter_attr("size", "small"),
                  price=10, categories=["Bags"]),
        make_item("Blue Coat", filter_attr("colour", "blue"), filter_attr("size", "large"),
                  price=20, categories=["Outerwear", "Sale"]),
    ]


@pytest.fixture
def categorised_products():
    return ItemTypeConfig(
        tag="products", permalink_dir="products", items_key="products",
        category_dir="categories",
    )


class TestCategoryFacets:

    def test_for_category_config(self, categorised_products):
        scoped = categorised_products.for_category("outerwear", "Outerwear")
        assert scoped.base_url == "/categories/outerwear"
        assert scoped.search_url == "/categories/outerwear/search"
        assert scoped.scope == "products:outerwear"
        assert scoped.title == "Outerwear"
        assert scoped.items_key == "products"

    def test_for_category_needs_category_dir(self, products):
        with pytest.raises(ValueError):
            products.for_category("outerwear")

    def test_from_dict_reads_category_dir(self):
        config = ItemTypeConfig.from_dict({"tag": "products", "category_dir": "categories"})
        assert config.category_dir == "categories"
        assert ItemTypeConfig.from_dict({"tag": "products"}).category_dir is None

    def test_one_artifact_set_per_category(self, categorised_items, categorised_products):
        builder = FacetBuilder(ContentRepository(categorised_items))
        artifacts = builder.build_categories(categorised_products)

        assert [a.item_type.base_url for a in artifacts] == [
            "/categories/bags", "/categories/outerwear", "/categories/sale",
        ]
        assert [a.total_items for a in artifacts] == [1, 2, 1]

    def test_category_subset_has_its_own_combinations(self, categorised_items, categorised_products):
        builder = FacetBuilder(ContentRepository(categorised_items))
        artifacts = builder.build_category(categorised_products, "outerwear")

        assert artifacts.item_type.title == "Outerwear"
        assert artifacts.attributes["attributes"] == {
            "colour": ["blue", "red"],
            "size": ["large"],
        }
        # 5 combinations x 5 sort keys + 4 sort-only pages
        assert len(artifacts.pages) == 5 * 5 + 4

        pages = {page["url"]: page for page in artifacts.pages}
        page = pages["/categories/outerwear/search/colour/red/"]
        assert [item["title"] for item in page["products"]] == ["Red Coat"]
        assert page["category"] == "outerwear"

        assert artifacts.redirects
        assert all(r["from"].startswith("/categories/outerwear/search/") for r in artifacts.redirects)
        assert all(r["to"].startswith("/categories/outerwear/search/") for r in artifacts.redirects)

    def test_category_listing_ui_links_stay_in_category(self, categorised_items, categorised_products):
        builder = FacetBuilder(ContentRepository(categorised_items))
        ui = builder.build_category(categorised_products, "outerwear").listing_ui

        # Both coats are large, so the size group cannot narrow the listing
        assert [group["name"] for group in ui["groups"]] == ["colour"]
        urls = [option["url"] for option in ui["groups"][0]["options"]]
        assert urls == [
            "/categories/outerwear/search/colour/blue/#content",
            "/categories/outerwear/search/colour/red/#content",
        ]

    def test_category_collections_cached_separately(self, categorised_items, categorised_products):
        cache = BuildCache(generation=5)
        repository = CountingRepository(categorised_items)
        builder = FacetBuilder(repository, cache)

        whole = builder.build(categorised_products)
        builder.build_categories(categorised_products)
        builder.build_category(categorised_products, "outerwear")

        assert ("products@5", "combinations") in cache
        assert ("products:outerwear@5", "combinations") in cache
        assert builder.combinations_for("products", "outerwear") is not \
            builder.combinations_for("products")
        assert whole.total_items == 3
        assert repository.calls == ["products"]

    def test_no_category_dir_builds_nothing(self, categorised_items, products):
        builder = FacetBuilder(ContentRepository(categorised_items))
        assert builder.build_categories(products) == []
