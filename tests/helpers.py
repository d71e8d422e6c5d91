"""
Shared catalog and configuration fixtures for the test suite
"""

from rolepricing.catalog import InMemoryCatalog

CATALOG_DATA = {
    "categories": {
        "clothing": None,
        "shirts": "clothing",
        "formal": "shirts",
        "books": None,
    },
    "products": {
        "tee": {"name": "Tee", "regular_price": "100", "categories": ["shirts"]},
        "dress-shirt": {
            "name": "Dress shirt",
            "regular_price": "100",
            "sale_price": "70",
            "categories": ["formal"],
        },
        "novel": {"name": "Novel", "regular_price": "20", "categories": ["books"]},
        "freebie": {"name": "Freebie", "regular_price": "0", "categories": ["books"]},
        "hoodie": {
            "name": "Hoodie",
            "categories": ["clothing"],
            "variations": {
                "hoodie-s": {"regular_price": "50"},
                "hoodie-m": {"regular_price": "80"},
                "hoodie-l": {"regular_price": "120"},
            },
        },
        "jacket": {
            "name": "Jacket",
            "categories": ["clothing"],
            "variations": {
                "jacket-s": {"regular_price": "60", "sale_price": "45"},
                "jacket-l": {"regular_price": "90"},
            },
        },
    },
}

CONFIG_DATA = {
    "enabled_roles": {"wholesale": True, "educator": True, "retail": False},
    "default_percent_by_role": {"wholesale": 10, "educator": 5, "retail": 50},
    "category_overrides": {
        "shirts": {"educator": 20, "retail": 90},
        "books": {"wholesale": 0},
    },
}


def build_catalog() -> InMemoryCatalog:
    return InMemoryCatalog.from_dict(CATALOG_DATA)
