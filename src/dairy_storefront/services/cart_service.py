"""Service owning the shopping cart and the wishlist."""
from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Any, Iterable

from ..config import CART_KEY, WISHLIST_KEY
from ..models import CartLine, Product, WishlistEntry
from ..storage.repository import KeyValueStore

logger = logging.getLogger(__name__)

class CartService:
    """Maintains cart lines and wishlist entries with write-through persistence.

    Both collections are keyed by product id, so a product appears at most
    once in each. Every mutating call writes the full affected collection to
    the store before returning. Operations on ids that are not present are
    silent no-ops.
    """

    def __init__(
        self,
        store: KeyValueStore,
        cart_key: str = CART_KEY,
        wishlist_key: str = WISHLIST_KEY,
    ) -> None:
        self._store = store
        self._cart_key = cart_key
        self._wishlist_key = wishlist_key
        self._cart: dict[str, CartLine] = {}
        self._wishlist: dict[str, WishlistEntry] = {}
        self._load()

    # Cart

    def add_to_cart(self, product: Product, quantity: int = 1) -> CartLine | None:
        """Add ``quantity`` units of ``product``, merging with an existing line.

        Stock limits are not checked here; callers validate availability.
        """

        if quantity < 1:
            logger.debug("Ignoring add of %s units for %s", quantity, product.id)
            return None

        line = self._cart.get(product.id)
        if line is None:
            line = CartLine(product=product, quantity=quantity)
        else:
            line = replace(line, quantity=line.quantity + quantity)
        self._cart[product.id] = line
        self._commit_cart()
        return line

    def remove_from_cart(self, product_id: str) -> None:
        self._cart.pop(product_id, None)
        self._commit_cart()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        """Set the line quantity to exactly ``quantity``; ``<= 0`` removes it."""

        if quantity <= 0:
            self.remove_from_cart(product_id)
            return

        line = self._cart.get(product_id)
        if line is not None:
            self._cart[product_id] = replace(line, quantity=quantity)
        self._commit_cart()

    def clear_cart(self) -> None:
        self._cart.clear()
        self._commit_cart()

    def cart_lines(self) -> list[CartLine]:
        return list(self._cart.values())

    def cart_line(self, product_id: str) -> CartLine | None:
        return self._cart.get(product_id)

    def is_in_cart(self, product_id: str) -> bool:
        return product_id in self._cart

    def cart_total(self) -> float:
        return sum((line.subtotal for line in self._cart.values()), 0.0)

    def cart_count(self) -> int:
        """Total units across all lines."""

        return sum(line.quantity for line in self._cart.values())

    def unique_product_count(self) -> int:
        return len(self._cart)

    # Wishlist

    def add_to_wishlist(self, product: Product) -> None:
        if product.id in self._wishlist:
            return
        self._wishlist[product.id] = product
        self._commit_wishlist()

    def remove_from_wishlist(self, product_id: str) -> None:
        self._wishlist.pop(product_id, None)
        self._commit_wishlist()

    def is_in_wishlist(self, product_id: str) -> bool:
        return product_id in self._wishlist

    def wishlist_items(self) -> list[WishlistEntry]:
        return list(self._wishlist.values())

    def wishlist_count(self) -> int:
        return len(self._wishlist)

    def move_to_cart(self, product_id: str) -> bool:
        """Move a wishlist entry into the cart as one unit.

        Returns ``False`` without touching either collection when the product
        is not on the wishlist.
        """

        entry = self._wishlist.get(product_id)
        if entry is None:
            return False
        self.add_to_cart(entry, 1)
        self.remove_from_wishlist(product_id)
        return True

    # Snapshots

    def refresh_products(self, catalog: Iterable[Product]) -> int:
        """Replace stored snapshots with the current catalog versions.

        Products missing from ``catalog`` keep their stored snapshot. Returns
        the number of snapshots that changed.
        """

        current = {product.id: product for product in catalog}
        cart_changes = 0
        for product_id, line in list(self._cart.items()):
            fresh = current.get(product_id)
            if fresh is not None and fresh != line.product:
                self._cart[product_id] = replace(line, product=fresh)
                cart_changes += 1

        wishlist_changes = 0
        for product_id, entry in list(self._wishlist.items()):
            fresh = current.get(product_id)
            if fresh is not None and fresh != entry:
                self._wishlist[product_id] = fresh
                wishlist_changes += 1

        if cart_changes:
            self._commit_cart()
        if wishlist_changes:
            self._commit_wishlist()
        if cart_changes or wishlist_changes:
            logger.info(
                "Refreshed %s cart and %s wishlist snapshots", cart_changes, wishlist_changes
            )
        return cart_changes + wishlist_changes

    def reload(self) -> None:
        """Discard in-memory state and read both collections from the store.

        Another process writing the same store is not merged: whichever side
        persists last wins.
        """

        self._store.reload()
        self._load()

    # Persistence

    def _load(self) -> None:
        self._cart = {line.product_id: line for line in self._read_cart()}
        self._wishlist = {entry.id: entry for entry in self._read_wishlist()}

    def _read_records(self, key: str) -> list[Any]:
        raw = self._store.get(key)
        if raw is None:
            return []
        try:
            records = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed data stored under %s", key)
            return []
        if not isinstance(records, list):
            logger.warning("Discarding non-list data stored under %s", key)
            return []
        return records

    def _read_cart(self) -> list[CartLine]:
        lines: dict[str, CartLine] = {}
        for record in self._read_records(self._cart_key):
            try:
                product = Product.from_dict(record["product"])
                quantity = int(record["quantity"])
            except (KeyError, TypeError, ValueError, AttributeError):
                continue
            if quantity < 1:
                continue
            existing = lines.get(product.id)
            if existing is None:
                lines[product.id] = CartLine(product=product, quantity=quantity)
            else:
                lines[product.id] = replace(existing, quantity=existing.quantity + quantity)
        return list(lines.values())

    def _read_wishlist(self) -> list[WishlistEntry]:
        entries: dict[str, WishlistEntry] = {}
        for record in self._read_records(self._wishlist_key):
            try:
                product = Product.from_dict(record)
            except (TypeError, ValueError, AttributeError):
                continue
            entries.setdefault(product.id, product)
        return list(entries.values())

    def _commit_cart(self) -> None:
        payload = [line.to_dict() for line in self._cart.values()]
        self._store.set(self._cart_key, json.dumps(payload, ensure_ascii=False))

    def _commit_wishlist(self) -> None:
        payload = [entry.to_dict() for entry in self._wishlist.values()]
        self._store.set(self._wishlist_key, json.dumps(payload, ensure_ascii=False))
