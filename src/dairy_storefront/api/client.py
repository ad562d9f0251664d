"""Client for the remote dairy catalog API."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import requests

from ..models import Product

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogClient:
    """Reads products, categories and brands from the storefront API.

    Responses use the ``{"success": bool, "data": {...}}`` envelope. Network
    failures and malformed payloads are logged and turned into empty results
    so the catalog view degrades to "no products" instead of crashing.
    """

    api_base_url: str
    timeout: int = 10

    def _get(self, path: str, params: Mapping[str, Any] | None = None) -> Mapping[str, Any] | None:
        url = f"{self.api_base_url.rstrip('/')}{path}"
        try:
            response = requests.get(url, params=dict(params or {}), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Catalog request to %s failed: %s", url, exc)
            return None

        if not isinstance(payload, Mapping) or not payload.get("success", False):
            message = payload.get("message") if isinstance(payload, Mapping) else None
            logger.warning("Catalog request to %s was rejected: %s", url, message or "unexpected payload")
            return None

        data = payload.get("data")
        return data if isinstance(data, Mapping) else None

    @staticmethod
    def _parse_products(records: Any) -> list[Product]:
        if not isinstance(records, list):
            return []

        products: list[Product] = []
        for record in records:
            if not isinstance(record, Mapping):
                continue
            try:
                products.append(Product.from_dict(record))
            except ValueError as exc:
                logger.debug("Skipping product record: %s", exc)
        return products

    def fetch_products(self, limit: int = 100, **params: Any) -> list[Product]:
        """Fetch up to ``limit`` products matching light server-side filters.

        The result is the candidate set the local query engine works on.
        """

        query_params: dict[str, Any] = {"page": 1, "limit": limit}
        for key, value in params.items():
            if value is None or value == "":
                continue
            if isinstance(value, (list, tuple, set, frozenset)):
                value = ",".join(sorted(str(item) for item in value))
            query_params[key] = value

        data = self._get("/api/products", query_params)
        if data is None:
            return []
        return self._parse_products(data.get("products"))

    def fetch_product(self, product_id: str) -> Product | None:
        data = self._get(f"/api/products/{product_id}")
        if data is None:
            return None
        record = data.get("product")
        if not isinstance(record, Mapping):
            return None
        try:
            return Product.from_dict(record)
        except ValueError:
            return None

    def fetch_categories(self) -> list[str]:
        data = self._get("/api/products/categories")
        return self._names(data, "categories")

    def fetch_brands(self) -> list[str]:
        data = self._get("/api/products/brands")
        return self._names(data, "brands")

    @staticmethod
    def _names(data: Mapping[str, Any] | None, field: str) -> list[str]:
        if data is None:
            return []
        values = data.get(field)
        if not isinstance(values, list):
            return []

        names: list[str] = []
        for value in values:
            # Directories come back either as plain names or as {"name": ...} objects.
            if isinstance(value, Mapping):
                value = value.get("name") or value.get("_id")
            if value:
                names.append(str(value))
        return names

    def health_check(self) -> dict[str, Any]:
        """Perform a lightweight request to ensure the API is reachable."""

        url = f"{self.api_base_url.rstrip('/')}/api/products"
        try:
            response = requests.get(url, params={"limit": 1}, timeout=self.timeout)
            response.raise_for_status()
            return {"ok": True, "checked_at": datetime.now(UTC)}
        except requests.RequestException as exc:
            return {"ok": False, "error": str(exc), "checked_at": datetime.now(UTC)}
