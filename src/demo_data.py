"""
Demo data generator for building the site without a content directory.
Generates products and holiday properties with filterable attributes.
"""

import random
from typing import Any, Dict, List


# Sample product data
PRODUCT_NAMES = [
    "Canvas Tote Bag",
    "Merino Wool Scarf",
    "Leather Card Wallet",
    "Linen Shirt",
    "Waxed Cotton Jacket",
    "Knitted Beanie",
    "Cord Trousers",
    "Organic Cotton Tee",
    "Rain Poncho",
    "Corduroy Cap",
]

PRODUCT_CATEGORIES = {
    "Canvas Tote Bag": ["Bags"],
    "Merino Wool Scarf": ["Accessories"],
    "Leather Card Wallet": ["Accessories", "Bags"],
    "Linen Shirt": ["Clothing"],
    "Waxed Cotton Jacket": ["Clothing", "Outerwear"],
    "Knitted Beanie": ["Accessories"],
    "Cord Trousers": ["Clothing"],
    "Organic Cotton Tee": ["Clothing"],
    "Rain Poncho": ["Outerwear"],
    "Corduroy Cap": ["Accessories"],
}

PRODUCT_ATTRIBUTES = {
    "Colour": ["Red", "Navy Blue", "Olive", "Black"],
    "Size": ["Small", "Medium", "Large"],
    "Material": ["Cotton", "Wool", "Leather"],
}

PROPERTY_NAMES = [
    "Beach Cottage",
    "Harbour View Apartment",
    "Hillside Barn",
    "Old Mill House",
    "Forest Cabin",
    "Town Centre Flat",
]

PROPERTY_ATTRIBUTES = {
    "Pet Friendly": ["Yes", "No"],
    "Type": ["Cottage", "Apartment", "Cabin"],
    "Bedrooms": ["1", "2", "3"],
}


def _attributes(rng: random.Random, choices: Dict[str, List[str]]) -> List[Dict[str, str]]:
    """Random attribute list; each attribute has a 1 in 5 chance of being absent."""
    return [
        {"name": name, "value": rng.choice(values)}
        for name, values in choices.items()
        if rng.random() >= 0.2
    ]


def generate_demo_items(count: int = 40, seed: int = 42) -> List[Dict[str, Any]]:
    """
    Generate demo items with realistic data.

    The same count and seed always give the same items.

    Args:
        count: Number of items to generate, split between products and properties
        seed: Random seed

    Returns:
        List of normalized item dicts matching the content loader format
    """
    rng = random.Random(seed)
    items = []

    product_count = count - count // 3
    for i in range(product_count):
        name = PRODUCT_NAMES[i % len(PRODUCT_NAMES)]
        items.append({
            "item_id": f"product-{i + 1}",
            "title": f"{name} {i // len(PRODUCT_NAMES) + 1}",
            "price": {
                "value": round(rng.uniform(8, 180), 2),
                "currency": "GBP",
            },
            "order": i,
            "date": None,
            "tags": ["products"],
            "categories": list(PRODUCT_CATEGORIES[name]),
            "url": f"/products/product-{i + 1}/",
            "image": "",
            "filter_attributes": _attributes(rng, PRODUCT_ATTRIBUTES),
        })

    for i in range(count - product_count):
        items.append({
            "item_id": f"property-{i + 1}",
            "title": f"{PROPERTY_NAMES[i % len(PROPERTY_NAMES)]} {i // len(PROPERTY_NAMES) + 1}",
            "price": {
                "value": float(rng.randrange(60, 400, 5)),
                "currency": "GBP",
            },
            "order": i,
            "date": None,
            "tags": ["properties"],
            "categories": [],
            "url": f"/properties/property-{i + 1}/",
            "image": "",
            "filter_attributes": _attributes(rng, PROPERTY_ATTRIBUTES),
        })

    return items


def get_demo_site_info() -> Dict[str, Any]:
    """Get demo site information."""
    return {
        "title": "Demo Catalogue",
        "tagline": "Faceted listings generated at build time - Demo Mode",
        "base_url": "",
        "generate_sitemap": False,
    }
