from __future__ import annotations

from dairy_storefront.models import FilterCriteria, SortKey
from dairy_storefront.services.browse_session import BrowseSession


def test_changing_filters_resets_to_first_page(make_product) -> None:
    session = BrowseSession([make_product(f"p{i}", price=i) for i in range(30)], page_size=12)
    session.go_to_page(3)
    assert session.pagination.page == 3

    session.update_filters(price_max=20)

    assert session.pagination.page == 1
    assert session.current_page().total_items == 21


def test_search_and_sort_also_reset_the_page(make_product) -> None:
    session = BrowseSession([make_product(f"p{i}") for i in range(30)], page_size=5)

    session.go_to_page(2)
    session.search("p1")
    assert session.pagination.page == 1
    assert session.criteria.search == "p1"

    session.go_to_page(2)
    session.sort_by("price_desc")
    assert session.pagination.page == 1
    assert session.criteria.sort is SortKey.PRICE_DESC


def test_load_more_stops_at_last_page(make_product) -> None:
    session = BrowseSession([make_product(f"p{i}") for i in range(25)], page_size=12)

    assert session.load_more().page == 2
    last = session.load_more()
    assert last.page == 3
    assert len(last.items) == 1
    assert session.load_more().page == 3


def test_go_to_page_is_clamped(make_product) -> None:
    session = BrowseSession([make_product(f"p{i}") for i in range(3)], page_size=2)

    assert session.go_to_page(9).page == 2
    assert session.go_to_page(-3).page == 1


def test_reset_filters_restores_initial_criteria(catalog) -> None:
    initial = FilterCriteria(categories=frozenset({"milk"}))
    session = BrowseSession(catalog, criteria=initial, page_size=2)
    session.update_filters(in_stock_only=True, brands=["Nestle"])

    session.reset_filters()

    assert session.criteria == initial
    assert len(session.results()) == 3
    assert session.criteria.active_filter_count() == 1


def test_empty_search_text_clears_search(catalog) -> None:
    session = BrowseSession(catalog)
    session.search("ghee")
    assert len(session.results()) == 1

    session.search("")

    assert session.criteria.search is None
    assert len(session.results()) == len(catalog)
