"""Checkout-side helpers computed from the current cart lines."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable

from ..config import CheckoutConfig
from ..models import CartLine


@dataclass(slots=True)
class CartSummary:
    """Totals shown on the cart and checkout pages."""

    items: int
    item_count: int
    subtotal: float
    delivery_charge: float
    total: float
    free_delivery_threshold: float
    amount_to_free_delivery: float

    @property
    def is_free_delivery(self) -> bool:
        return self.delivery_charge == 0


@dataclass(slots=True)
class CartIssue:
    """A problem with a single cart line."""

    product_id: str
    product_name: str
    message: str


@dataclass(slots=True)
class CartValidation:
    errors: list[CartIssue] = field(default_factory=list)
    warnings: list[CartIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        return "Cart is valid" if self.is_valid else "Some items have issues"


def summarize_cart(lines: Iterable[CartLine], config: CheckoutConfig | None = None) -> CartSummary:
    """Compute subtotal, delivery surcharge and total for ``lines``.

    The surcharge applies below the free-delivery threshold and is waived at
    or above it. An empty cart has nothing to deliver and is never charged.
    """

    config = config or CheckoutConfig()
    lines = list(lines)
    subtotal = sum((line.subtotal for line in lines), 0.0)
    if not lines or subtotal >= config.free_delivery_threshold:
        delivery_charge = 0.0
    else:
        delivery_charge = config.delivery_charge

    return CartSummary(
        items=len(lines),
        item_count=sum(line.quantity for line in lines),
        subtotal=subtotal,
        delivery_charge=delivery_charge,
        total=subtotal + delivery_charge,
        free_delivery_threshold=config.free_delivery_threshold,
        amount_to_free_delivery=max(0.0, config.free_delivery_threshold - subtotal),
    )


def validate_cart(lines: Iterable[CartLine], low_stock_threshold: int = 5) -> CartValidation:
    """Check each line against the availability recorded in its snapshot."""

    validation = CartValidation()
    for line in lines:
        product = line.product
        if not product.is_available:
            validation.errors.append(
                CartIssue(product.id, product.name, "Product is no longer available")
            )
        elif line.quantity > product.quantity:
            validation.errors.append(
                CartIssue(product.id, product.name, f"Only {product.quantity} items available in stock")
            )
        elif product.quantity < low_stock_threshold:
            validation.warnings.append(
                CartIssue(product.id, product.name, f"Low stock: Only {product.quantity} items left")
            )
    return validation


def prepare_for_checkout(lines: Iterable[CartLine]) -> list[dict[str, object]]:
    """Order payload lines expected by the remote order endpoint."""

    return [
        {
            "product": line.product.id,
            "quantity": line.quantity,
            "price": line.product.price,
            "name": line.product.name,
            "image": line.product.image_url or "",
        }
        for line in lines
    ]


def estimated_delivery_date(now: datetime, cutoff_hour: int = 12) -> date:
    """Same-day delivery for orders placed before ``cutoff_hour``, else next day."""

    if now.hour < cutoff_hour:
        return now.date()
    return (now + timedelta(days=1)).date()


def format_currency(amount: float, symbol: str = "₹") -> str:
    return f"{symbol}{amount:,.2f}"
