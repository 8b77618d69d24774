"""Shared catalog builders for the search tests."""
from __future__ import annotations

import pytest

from portal_search.models import Product


def build_product(name: str, item_code: str, **fields) -> Product:
    fields.setdefault("id", item_code)
    fields.setdefault("price", "100.00")
    return Product(name=name, itemCode=item_code, **fields)


@pytest.fixture
def make_product():
    return build_product


@pytest.fixture
def lubricant_catalog() -> list[Product]:
    return [
        build_product("Shell Helix HX7 5W30 1L", "SH-100", brand="Shell", category="Lubricants"),
        build_product("Total Quartz 9000 5W40 5L", "TQ-200", brand="Total", category="Lubricants"),
        build_product("Castrol GTX 20W50 4L", "CA-300", brand="Castrol", category="Lubricants"),
        build_product(
            "Mobil Delvac MX 15W40 5L",
            "MO-400",
            brand="Mobil",
            category="Lubricants",
            description="Huile moteur diesel API CI-4",
        ),
        build_product(
            "Oil Filter",
            "ABC12345",
            brand="Mann",
            category="Filters",
            description="Cross reference OEM 04152-YZZA1",
        ),
        build_product("Brake Pads Front", "BP-9001", category="Brakes", price="0.00"),
    ]
