from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Callable

import pytest

from dairy_storefront.models import Product, ProductRating

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def build_product(
    product_id: str,
    price: float = 100.0,
    category: str = "milk",
    brand: str = "Amul",
    rating: float | None = None,
    age_days: int = 0,
    **overrides,
) -> Product:
    fields = {
        "id": product_id,
        "name": f"Product {product_id}",
        "price": price,
        "category": category,
        "brand": brand,
        "is_available": True,
        "quantity": 10,
        "rating": ProductRating(average=rating, count=3) if rating is not None else None,
        "created_at": BASE_TIME - timedelta(days=age_days),
    }
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture
def make_product() -> Callable[..., Product]:
    return build_product


@pytest.fixture
def catalog() -> list[Product]:
    """Ten products, three of them milk priced 50, 120 and 80, two unrated."""

    return [
        build_product("milk-1", price=50, category="milk", rating=4.5, age_days=9),
        build_product("milk-2", price=120, category="milk", rating=3.0, age_days=8),
        build_product("milk-3", price=80, category="milk", rating=4.0, age_days=7),
        build_product("cheese-1", price=300, category="cheese", brand="Britannia", rating=4.8, age_days=6),
        build_product("cheese-2", price=250, category="cheese", brand="Britannia", age_days=5),
        build_product("yogurt-1", price=40, category="yogurt", brand="Nestle", rating=2.5, age_days=4),
        build_product("yogurt-2", price=60, category="yogurt", brand="Nestle", age_days=3),
        build_product("butter-1", price=55, category="butter", rating=4.2, age_days=2, is_available=False),
        build_product("paneer-1", price=90, category="paneer", brand="Mother Dairy", rating=3.9, age_days=1, quantity=0),
        build_product(
            "ghee-1",
            price=450,
            category="ghee",
            brand="Mother Dairy",
            rating=5.0,
            age_days=0,
            description="Pure desi ghee from cow milk",
        ),
    ]
