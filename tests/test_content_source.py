"""Tests for item loading: repository, content files and the JSON feed."""

import json

import httpx
import pytest
import yaml

from content_source import (
    ContentRepository,
    FeedClient,
    load_items_from_directory,
    normalize_item,
)
from demo_data import generate_demo_items


class TestContentRepository:

    def test_items_by_tag_keep_input_order(self):
        items = [
            {"title": "B", "tags": ["products"]},
            {"title": "X", "tags": ["properties"]},
            {"title": "A", "tags": ["products", "featured"]},
        ]
        repository = ContentRepository(items)
        assert [i["title"] for i in repository.get_items_by_tag("products")] == ["B", "A"]
        assert repository.tags() == ["featured", "products", "properties"]

    def test_returns_new_list_of_same_records(self):
        items = [{"title": "A", "tags": ["products"]}]
        repository = ContentRepository(items)
        result = repository.get_items_by_tag("products")
        assert result is not items
        assert result[0] is items[0]

    def test_unknown_tag(self):
        assert ContentRepository([]).get_items_by_tag("nothing") == []

    def test_rejects_non_list(self):
        with pytest.raises(TypeError):
            ContentRepository({"title": "A"})


class TestNormalizeItem:

    def test_bare_price_and_string_tag(self):
        item = normalize_item({"id": 7, "title": "Hat", "price": "12.5", "tags": "products"})
        assert item["item_id"] == "7"
        assert item["price"] == {"value": 12.5, "currency": "USD"}
        assert item["tags"] == ["products"]
        assert item["filter_attributes"] == []
        assert item["categories"] == []

    def test_single_category_becomes_list(self):
        assert normalize_item({"categories": "Outerwear"})["categories"] == ["Outerwear"]

    def test_price_dict_and_missing_price(self):
        assert normalize_item({"price": {"value": 3, "currency": "GBP"}})["price"] == \
            {"value": 3.0, "currency": "GBP"}
        assert normalize_item({"title": "Free"})["price"] is None

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            normalize_item(["title", "Hat"])


class TestLoadItemsFromDirectory:

    def test_reads_yaml_and_json_in_name_order(self, tmp_path):
        (tmp_path / "b.yaml").write_text(yaml.safe_dump([
            {"title": "Second", "tags": ["products"],
             "filter_attributes": [{"name": "Colour", "value": "Red"}]},
            {"title": "Third", "tags": ["products"]},
        ]))
        (tmp_path / "a.json").write_text(json.dumps({"title": "First", "price": 4}))
        (tmp_path / "notes.txt").write_text("ignored")
        (tmp_path / "c.yml").write_text("")

        items = load_items_from_directory(tmp_path)

        assert [item["title"] for item in items] == ["First", "Second", "Third"]
        assert items[0]["item_id"] == "a-0"
        assert items[1]["filter_attributes"] == [{"name": "Colour", "value": "Red"}]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_items_from_directory(tmp_path / "missing")


def feed_handler(pages, calls, fail_offsets=()):
    def handler(request):
        offset = int(request.url.params["offset"])
        calls.append(offset)
        if offset in fail_offsets:
            return httpx.Response(500, json={"error": "boom"})
        return httpx.Response(200, json=pages[offset])
    return handler


@pytest.fixture
def feed_pages():
    return {
        0: {"total": 3, "items": [{"id": "1", "title": "One"}, {"id": "2", "title": "Two"}]},
        2: {"total": 3, "items": [{"id": "3", "title": "Three", "price": 9}]},
    }


class TestFeedClient:

    def test_follows_pagination(self, tmp_path, feed_pages):
        calls = []
        client = FeedClient(
            "https://feed.example.com/items",
            cache_dir=tmp_path,
            page_size=2,
            transport=httpx.MockTransport(feed_handler(feed_pages, calls)),
        )
        items = client.fetch_items()

        assert [item["title"] for item in items] == ["One", "Two", "Three"]
        assert items[2]["price"]["value"] == 9.0
        assert calls == [0, 2]
        assert client.requests_made == 2

    def test_uses_disk_cache(self, tmp_path, feed_pages):
        calls = []
        transport = httpx.MockTransport(feed_handler(feed_pages, calls))
        FeedClient("https://feed.example.com/items", cache_dir=tmp_path, page_size=2,
                   transport=transport).fetch_items()

        again = FeedClient("https://feed.example.com/items", cache_dir=tmp_path, page_size=2,
                           transport=transport)
        assert len(again.fetch_items()) == 3
        assert again.requests_made == 0
        assert calls == [0, 2]

    def test_force_refresh_skips_cache(self, tmp_path, feed_pages):
        calls = []
        transport = httpx.MockTransport(feed_handler(feed_pages, calls))
        client = FeedClient("https://feed.example.com/items", cache_dir=tmp_path, page_size=2,
                            transport=transport)
        client.fetch_items()
        client.fetch_items(force_refresh=True)
        assert calls == [0, 2, 0, 2]

    def test_failed_page_fails_the_fetch(self, tmp_path, feed_pages):
        calls = []
        client = FeedClient(
            "https://feed.example.com/items",
            cache_dir=tmp_path,
            page_size=2,
            transport=httpx.MockTransport(feed_handler(feed_pages, calls, fail_offsets={2})),
        )
        with pytest.raises(httpx.HTTPError):
            client.fetch_items()


class TestDemoData:

    def test_deterministic(self):
        assert generate_demo_items(12, seed=1) == generate_demo_items(12, seed=1)

    def test_tags_and_attributes(self):
        items = generate_demo_items(12)
        assert len(items) == 12
        assert {tag for item in items for tag in item["tags"]} == {"products", "properties"}
        assert all(isinstance(item["filter_attributes"], list) for item in items)

    def test_products_carry_categories(self):
        items = generate_demo_items(12)
        products = [item for item in items if "products" in item["tags"]]
        assert all(item["categories"] for item in products)
        assert products[0]["categories"] == ["Bags"]
