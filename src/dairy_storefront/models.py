"""Domain models shared by the cart, wishlist and catalog query engines."""
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace as dataclass_replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        timestamp = value
    elif isinstance(value, str) and value:
        try:
            timestamp = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return timestamp


def _first_image_url(images: Any) -> str | None:
    if not isinstance(images, list) or not images:
        return None
    first = images[0]
    if isinstance(first, Mapping):
        url = first.get("url")
        return str(url) if url else None
    return str(first) if first else None


@dataclass(slots=True, frozen=True)
class ProductRating:
    """Aggregate of customer reviews for a product."""

    average: float = 0.0
    count: int = 0


@dataclass(slots=True, frozen=True)
class Product:
    """Catalog product as delivered by the remote API.

    Instances are snapshots: the engine never mutates them, it replaces them.
    """

    id: str
    name: str
    price: float
    category: str = ""
    brand: str = ""
    is_available: bool = True
    quantity: int = 0
    rating: Optional[ProductRating] = None
    created_at: Optional[datetime] = None
    description: str = ""
    unit: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def rating_average(self) -> float:
        return self.rating.average if self.rating is not None else 0.0

    @property
    def in_stock(self) -> bool:
        return self.is_available and self.quantity > 0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Product:
        """Build a product from the catalog wire format.

        Accepts both ``_id`` and ``id`` as identifier. Raises ``ValueError`` when
        the identifier is missing or the price is not numeric so callers can
        decide whether to skip the record.
        """

        product_id = payload.get("_id") or payload.get("id")
        if not product_id:
            raise ValueError("Product payload has no identifier")

        try:
            price = float(payload.get("price", 0) or 0)
            quantity = int(payload.get("quantity", 0) or 0)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Malformed numeric field on product {product_id}") from exc

        rating: ProductRating | None = None
        rating_field = payload.get("rating")
        if isinstance(rating_field, Mapping):
            try:
                rating = ProductRating(
                    average=float(rating_field.get("average", 0) or 0),
                    count=int(rating_field.get("count", 0) or 0),
                )
            except (TypeError, ValueError):
                rating = None

        is_available = payload.get("isAvailable", payload.get("is_available", True))

        return cls(
            id=str(product_id),
            name=str(payload.get("name") or ""),
            price=max(price, 0.0),
            category=str(payload.get("category") or ""),
            brand=str(payload.get("brand") or ""),
            is_available=bool(is_available),
            quantity=max(quantity, 0),
            rating=rating,
            created_at=_parse_timestamp(payload.get("createdAt", payload.get("created_at"))),
            description=str(payload.get("description") or ""),
            unit=payload.get("unit") or None,
            image_url=payload.get("image_url") or _first_image_url(payload.get("images")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the same shape accepted by :meth:`from_dict`."""

        data: dict[str, Any] = {
            "_id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "brand": self.brand,
            "isAvailable": self.is_available,
            "quantity": self.quantity,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "unit": self.unit,
            "images": [{"url": self.image_url}] if self.image_url else [],
        }
        if self.rating is not None:
            data["rating"] = {"average": self.rating.average, "count": self.rating.count}
        return data


@dataclass(slots=True, frozen=True)
class CartLine:
    """One product and the number of units ordered.

    Lines are immutable; the cart service swaps in a new line on every change.
    """

    product: Product
    quantity: int = 1

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def subtotal(self) -> float:
        return self.product.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {"product": self.product.to_dict(), "quantity": self.quantity}


# Wishlist entries are plain product snapshots keyed by id.
WishlistEntry = Product


class SortKey(str, Enum):
    """Result orderings supported by the catalog query engine."""

    NEWEST = "newest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    RATING = "rating"

    @classmethod
    def parse(cls, value: str | None) -> SortKey:
        """Return the matching key, falling back to ``NEWEST``."""

        if not value:
            return cls.NEWEST
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST


@dataclass(slots=True, frozen=True)
class FilterCriteria:
    """User-selected constraints applied to the catalog view.

    Empty sets and ``None`` bounds mean "no constraint".
    """

    categories: frozenset[str] = field(default_factory=frozenset)
    brands: frozenset[str] = field(default_factory=frozenset)
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    rating_min: Optional[int] = None
    in_stock_only: bool = False
    search: Optional[str] = None
    sort: SortKey = SortKey.NEWEST

    def replace(self, **changes: Any) -> FilterCriteria:
        for name in ("categories", "brands"):
            if name in changes and not isinstance(changes[name], frozenset):
                changes[name] = frozenset(changes[name] or ())
        return dataclass_replace(self, **changes)

    def active_filter_count(self) -> int:
        """Number of active constraints, not counting the sort order."""

        active = [
            bool(self.categories),
            bool(self.brands),
            self.price_min is not None,
            self.price_max is not None,
            self.rating_min is not None,
            self.in_stock_only,
            bool(self.search),
        ]
        return sum(active)


@dataclass(slots=True, frozen=True)
class PaginationState:
    """1-based page index and page size requested by the caller."""

    page: int = 1
    page_size: int = 12

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"Page index must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"Page size must be >= 1, got {self.page_size}")

    def first_page(self) -> PaginationState:
        return PaginationState(page=1, page_size=self.page_size)


@dataclass(slots=True)
class PageResult:
    """Visible slice of a result set plus derived pagination totals."""

    items: list[Product]
    page: int
    page_size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_items / self.page_size))

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages
