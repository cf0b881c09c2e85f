"""Shared fixtures for the facet engine tests."""

import pytest


def filter_attr(name, value):
    """Raw attribute entry as it appears on an item."""
    return {"name": name, "value": value}


def make_item(title, *attrs, price=None, tags=("products",), item_id=None, categories=()):
    """Item record in the normalized content format."""
    return {
        "item_id": item_id or title.lower().replace(" ", "-"),
        "title": title,
        "price": {"value": float(price), "currency": "GBP"} if price is not None else None,
        "order": None,
        "date": None,
        "tags": list(tags),
        "categories": list(categories),
        "url": "",
        "image": "",
        "filter_attributes": list(attrs),
    }


@pytest.fixture
def colour_size_items():
    """Three items: red/large, red/small, blue/large."""
    return [
        make_item("Red Large", filter_attr("colour", "red"), filter_attr("size", "large"), price=30),
        make_item("Red Small", filter_attr("colour", "red"), filter_attr("size", "small"), price=10),
        make_item("Blue Large", filter_attr("colour", "blue"), filter_attr("size", "large"), price=20),
    ]


@pytest.fixture
def grid_items():
    """Four items covering every colour x size pair."""
    return [
        make_item("Red Large", filter_attr("Colour", "Red"), filter_attr("Size", "Large"), price=40),
        make_item("Red Small", filter_attr("Colour", "Red"), filter_attr("Size", "Small"), price=10),
        make_item("Blue Large", filter_attr("Colour", "Blue"), filter_attr("Size", "Large"), price=30),
        make_item("Blue Small", filter_attr("Colour", "Blue"), filter_attr("Size", "Small"), price=20),
    ]


@pytest.fixture
def property_items():
    """Holiday properties with mixed-case, multi-word attributes."""
    return [
        make_item(
            "Beach Cottage",
            filter_attr("Pet Friendly", "Yes"),
            filter_attr("Type", "Cottage"),
            price=140,
            tags=("properties",),
        ),
        make_item(
            "City Apartment",
            filter_attr("Pet Friendly", "No"),
            filter_attr("Type", "Apartment"),
            price=95,
            tags=("properties",),
        ),
        make_item(
            "Pet Apartment",
            filter_attr("Pet Friendly", "Yes"),
            filter_attr("Type", "Apartment"),
            price=110,
            tags=("properties",),
        ),
    ]
