"""Flask application exposing the catalog, cart and wishlist as JSON."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flask import Flask, jsonify, request

from ..api.client import CatalogClient
from ..config import DEFAULT_CONFIG, AppConfig
from ..models import CartLine, FilterCriteria, PageResult, PaginationState, SortKey
from ..services.cart_service import CartService
from ..services.catalog_query import paginate, query
from ..services.checkout_service import format_currency, summarize_cart, validate_cart
from ..storage.repository import JsonFileStore

logger = logging.getLogger(__name__)


def _parse_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if number != number or number < 0:  # NaN or negative
        return None
    return number


def _parse_int(value: str | None, default: int | None = None) -> int | None:
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_set(value: str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    return frozenset(part.strip() for part in value.split(",") if part.strip())


def criteria_from_params(params: Mapping[str, str]) -> FilterCriteria:
    """Normalise raw query-string text into well-typed ``FilterCriteria``.

    Malformed numbers become "no constraint" instead of an error.
    """

    rating_min = _parse_int(params.get("minRating"))
    if rating_min is not None and not 1 <= rating_min <= 5:
        rating_min = None

    search = (params.get("search") or "").strip() or None
    in_stock = (params.get("inStock") or "").lower() in {"1", "true", "yes", "on"}

    return FilterCriteria(
        categories=_parse_set(params.get("category")),
        brands=_parse_set(params.get("brand")),
        price_min=_parse_float(params.get("minPrice")),
        price_max=_parse_float(params.get("maxPrice")),
        rating_min=rating_min,
        in_stock_only=in_stock,
        search=search,
        sort=SortKey.parse(params.get("sort")),
    )


def _line_payload(line: CartLine) -> dict[str, Any]:
    return {"product": line.product.to_dict(), "quantity": line.quantity, "subtotal": line.subtotal}


def _page_payload(page: PageResult) -> dict[str, Any]:
    return {
        "page": page.page,
        "limit": page.page_size,
        "total": page.total_items,
        "pages": page.total_pages,
        "hasMore": page.has_more,
    }


def create_app(
    catalog_client: CatalogClient,
    cart_service: CartService,
    config: AppConfig = DEFAULT_CONFIG,
) -> Flask:
    app = Flask(__name__)

    app.config["catalog_client"] = catalog_client
    app.config["cart_service"] = cart_service

    def _request_data() -> Mapping[str, Any]:
        return request.get_json(silent=True) or request.form

    def _cart_snapshot() -> dict[str, Any]:
        lines = cart_service.cart_lines()
        summary = summarize_cart(lines, config.checkout)
        validation = validate_cart(lines, config.checkout.low_stock_threshold)
        symbol = config.checkout.currency_symbol
        return {
            "lines": [_line_payload(line) for line in lines],
            "count": cart_service.cart_count(),
            "uniqueProducts": cart_service.unique_product_count(),
            "total": cart_service.cart_total(),
            "summary": {
                "items": summary.items,
                "itemCount": summary.item_count,
                "subtotal": format_currency(summary.subtotal, symbol),
                "deliveryCharge": format_currency(summary.delivery_charge, symbol),
                "total": format_currency(summary.total, symbol),
                "amountToFreeDelivery": format_currency(summary.amount_to_free_delivery, symbol),
                "isFreeDelivery": summary.is_free_delivery,
            },
            "validation": {
                "isValid": validation.is_valid,
                "message": validation.message,
                "errors": [issue.message for issue in validation.errors],
                "warnings": [issue.message for issue in validation.warnings],
            },
        }

    def _wishlist_snapshot() -> dict[str, Any]:
        items = cart_service.wishlist_items()
        return {"items": [product.to_dict() for product in items], "count": len(items)}

    def _refresh_snapshots() -> None:
        # Stored snapshots follow the live catalog whenever it is read.
        cart_service.refresh_products(catalog_client.fetch_products(limit=config.catalog.fetch_limit))

    def _error(message: str, status: int):
        return jsonify({"success": False, "message": message}), status

    @app.get("/products")
    def products():
        criteria = criteria_from_params(request.args)
        page_number = max(_parse_int(request.args.get("page"), 1) or 1, 1)
        page_state = PaginationState(page=page_number, page_size=config.catalog.page_size)

        candidates = catalog_client.fetch_products(limit=config.catalog.fetch_limit)
        cart_service.refresh_products(candidates)
        results = query(candidates, criteria)
        page = paginate(results, page_state)
        return jsonify(
            {
                "products": [product.to_dict() for product in page.items],
                "pagination": _page_payload(page),
                "activeFilters": criteria.active_filter_count(),
            }
        )

    @app.get("/cart")
    def cart():
        _refresh_snapshots()
        return jsonify(_cart_snapshot())

    @app.post("/cart")
    def add_to_cart():
        data = _request_data()
        product_id = data.get("product_id")
        quantity = _parse_int(str(data.get("quantity", "1")), None)
        if not product_id or quantity is None or quantity < 1:
            return _error("A product id and a positive quantity are required", 400)

        product = catalog_client.fetch_product(str(product_id))
        if product is None:
            return _error("Unknown product", 404)
        if not product.in_stock:
            return _error("Product is not available", 409)

        cart_service.refresh_products([product])
        cart_service.add_to_cart(product, quantity)
        logger.info("Added %s x %s to cart", quantity, product.id)
        return jsonify(_cart_snapshot()), 201

    @app.post("/cart/<product_id>/quantity")
    def update_quantity(product_id: str):
        quantity = _parse_int(str(_request_data().get("quantity", "")), None)
        if quantity is None:
            return _error("Quantity must be a whole number", 400)
        cart_service.update_quantity(product_id, quantity)
        return jsonify(_cart_snapshot())

    @app.post("/cart/<product_id>/remove")
    def remove_from_cart(product_id: str):
        cart_service.remove_from_cart(product_id)
        return jsonify(_cart_snapshot())

    @app.post("/cart/clear")
    def clear_cart():
        cart_service.clear_cart()
        return jsonify(_cart_snapshot())

    @app.get("/wishlist")
    def wishlist():
        _refresh_snapshots()
        return jsonify(_wishlist_snapshot())

    @app.post("/wishlist")
    def add_to_wishlist():
        product_id = _request_data().get("product_id")
        if not product_id:
            return _error("A product id is required", 400)
        product = catalog_client.fetch_product(str(product_id))
        if product is None:
            return _error("Unknown product", 404)
        cart_service.refresh_products([product])
        cart_service.add_to_wishlist(product)
        return jsonify(_wishlist_snapshot()), 201

    @app.post("/wishlist/<product_id>/remove")
    def remove_from_wishlist(product_id: str):
        cart_service.remove_from_wishlist(product_id)
        return jsonify(_wishlist_snapshot())

    @app.post("/wishlist/<product_id>/move")
    def move_to_cart(product_id: str):
        fresh = catalog_client.fetch_product(product_id)
        if fresh is not None:
            cart_service.refresh_products([fresh])
        if not cart_service.move_to_cart(product_id):
            return _error("Unknown product", 404)
        return jsonify({"cart": _cart_snapshot(), "wishlist": _wishlist_snapshot()})

    @app.get("/health")
    def health():
        status = catalog_client.health_check()
        return jsonify({"ok": status["ok"], "error": status.get("error")}), 200 if status["ok"] else 503

    return app


def bootstrap_app(config: AppConfig = DEFAULT_CONFIG) -> tuple[Flask, CartService]:
    """Factory used by the entrypoint for running the web API."""

    config.ensure_data_directories()
    store = JsonFileStore(config.storage_path)
    cart_service = CartService(
        store,
        cart_key=config.storage.cart_key,
        wishlist_key=config.storage.wishlist_key,
    )
    catalog_client = CatalogClient(
        api_base_url=config.catalog.api_base_url,
        timeout=config.catalog.request_timeout_seconds,
    )
    logger.info(
        "Loaded %s cart lines and %s wishlist entries from %s",
        cart_service.unique_product_count(),
        cart_service.wishlist_count(),
        config.storage_path,
    )

    app = create_app(catalog_client, cart_service, config)
    return app, cart_service
