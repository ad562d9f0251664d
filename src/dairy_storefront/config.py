"""Configuration settings for the dairy storefront shopping engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

CART_KEY = "dairy_cart"
WISHLIST_KEY = "dairy_wishlist"


@dataclass(slots=True)
class StorageConfig:
    """Where and under which keys cart and wishlist snapshots are stored."""

    filename: str = "storefront_state.json"
    """File inside the data directory holding the key-value blobs."""

    cart_key: str = CART_KEY
    wishlist_key: str = WISHLIST_KEY


@dataclass(slots=True)
class CatalogConfig:
    """Settings for talking to the remote catalog API."""

    api_base_url: str = "https://dairydrop.onrender.com"
    request_timeout_seconds: int = 10

    fetch_limit: int = 100
    """Products fetched per request; the query engine filters this set locally."""

    page_size: int = 12


@dataclass(slots=True)
class CheckoutConfig:
    """Boundary constants consumed by checkout flows."""

    free_delivery_threshold: float = 500.0
    delivery_charge: float = 50.0
    low_stock_threshold: int = 5
    same_day_cutoff_hour: int = 12
    currency_symbol: str = "₹"


@dataclass(slots=True)
class AppConfig:
    """Top-level configuration for the application."""

    environment: Literal["development", "production"] = "development"
    data_directory: Path = field(default_factory=lambda: Path("data"))
    storage: StorageConfig = field(default_factory=StorageConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    checkout: CheckoutConfig = field(default_factory=CheckoutConfig)

    @property
    def storage_path(self) -> Path:
        return self.data_directory / self.storage.filename

    def ensure_data_directories(self) -> None:
        """Create data directories required by the application."""

        self.data_directory.mkdir(parents=True, exist_ok=True)


DEFAULT_CONFIG = AppConfig()
