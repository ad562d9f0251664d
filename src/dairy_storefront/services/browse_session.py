"""Caller-side state for browsing the catalog page by page."""
from __future__ import annotations

from typing import Any, Iterable

from ..models import FilterCriteria, PageResult, PaginationState, Product, SortKey
from .catalog_query import paginate, query


class BrowseSession:
    """Holds the product set, the active criteria and the current page.

    Any change to the criteria sends the session back to page 1. Results are
    recomputed from the resident product set on demand.
    """

    def __init__(
        self,
        products: Iterable[Product] = (),
        criteria: FilterCriteria | None = None,
        page_size: int = 12,
    ) -> None:
        self._initial_criteria = criteria or FilterCriteria()
        self._products: list[Product] = list(products)
        self.criteria = self._initial_criteria
        self.pagination = PaginationState(page=1, page_size=page_size)

    @property
    def products(self) -> list[Product]:
        return list(self._products)

    def set_products(self, products: Iterable[Product]) -> None:
        self._products = list(products)
        self.pagination = self.pagination.first_page()

    def update_filters(self, **changes: Any) -> FilterCriteria:
        self.criteria = self.criteria.replace(**changes)
        self.pagination = self.pagination.first_page()
        return self.criteria

    def search(self, text: str | None) -> FilterCriteria:
        return self.update_filters(search=text or None)

    def sort_by(self, sort: SortKey | str) -> FilterCriteria:
        key = sort if isinstance(sort, SortKey) else SortKey.parse(sort)
        return self.update_filters(sort=key)

    def reset_filters(self) -> FilterCriteria:
        self.criteria = self._initial_criteria
        self.pagination = self.pagination.first_page()
        return self.criteria

    def results(self) -> list[Product]:
        return query(self._products, self.criteria)

    def current_page(self) -> PageResult:
        return paginate(self.results(), self.pagination)

    def go_to_page(self, page: int) -> PageResult:
        """Jump to ``page``, clamped to the available range."""

        total_pages = paginate(self.results(), self.pagination.first_page()).total_pages
        target = min(max(page, 1), total_pages)
        self.pagination = PaginationState(page=target, page_size=self.pagination.page_size)
        return self.current_page()

    def load_more(self) -> PageResult:
        """Advance one page when more results exist."""

        page = self.current_page()
        if page.has_more:
            return self.go_to_page(page.page + 1)
        return page
