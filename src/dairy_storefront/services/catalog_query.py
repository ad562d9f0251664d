"""Filtering, sorting and pagination over an in-memory product set.

Both entry points are pure: they never mutate their inputs and return the same
output for the same arguments.
"""
from __future__ import annotations

from typing import Callable, Iterable, Sequence

from ..models import FilterCriteria, PageResult, PaginationState, Product, SortKey


def _created_key(product: Product) -> float:
    # Products without a timestamp sort after everything else.
    if product.created_at is None:
        return float("-inf")
    return product.created_at.timestamp()


def _matches_search(product: Product, search: str) -> bool:
    needle = search.lower()
    haystacks = (product.name, product.description, product.category, product.brand)
    return any(needle in (value or "").lower() for value in haystacks)


def matches(product: Product, criteria: FilterCriteria) -> bool:
    """Return ``True`` when ``product`` satisfies every active constraint."""

    if criteria.search and not _matches_search(product, criteria.search):
        return False

    if criteria.categories and product.category not in criteria.categories:
        return False

    if criteria.brands and product.brand not in criteria.brands:
        return False

    if criteria.price_min is not None and product.price < criteria.price_min:
        return False
    if criteria.price_max is not None and product.price > criteria.price_max:
        return False

    # Unrated products count as 0 stars.
    if criteria.rating_min is not None and product.rating_average < criteria.rating_min:
        return False

    if criteria.in_stock_only and not product.in_stock:
        return False

    return True


def _sort_order(sort: SortKey) -> tuple[Callable[[Product], object], bool]:
    if sort is SortKey.PRICE_ASC:
        return (lambda product: product.price), False
    if sort is SortKey.PRICE_DESC:
        return (lambda product: product.price), True
    if sort is SortKey.RATING:
        return (lambda product: product.rating_average), True
    return _created_key, True


def query(products: Iterable[Product], criteria: FilterCriteria) -> list[Product]:
    """Filter ``products`` by ``criteria`` and order them by its sort key.

    Ties keep their input order. An empty list is a normal result.
    """

    filtered = [product for product in products if matches(product, criteria)]
    key, reverse = _sort_order(criteria.sort)
    return sorted(filtered, key=key, reverse=reverse)


def paginate(results: Sequence[Product], page_state: PaginationState) -> PageResult:
    """Cut the visible page out of an ordered result set.

    Pages past the end yield an empty slice; ``total_pages`` is at least 1.
    """

    total = len(results)
    start = min((page_state.page - 1) * page_state.page_size, total)
    end = min(start + page_state.page_size, total)
    return PageResult(
        items=list(results[start:end]),
        page=page_state.page,
        page_size=page_state.page_size,
        total_items=total,
    )
