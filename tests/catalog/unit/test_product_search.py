"""
Unit Tests: product search

Tests for repositories/product.py build_search_predicates() and
ProductService.search_products() covering filters, sorting, paging and the
clamping rules of ProductSearchCriteria.
"""

from decimal import Decimal

import pytest

from enums.sort_field import SortField, SortOrder
from models.search import ProductSearchCriteria, ProductSearchResult
from repositories.product import build_search_predicates
from services.product import ProductService


@pytest.fixture
def seeded_catalog(make_category, make_product):
    """Five active products across two categories plus one inactive product."""
    async def seed():
        books = await make_category(name="Books")
        tools = await make_category(name="Tools")
        await make_product(name="Python Cookbook", price="45.00", stock_quantity=3, category_id=books.id)
        await make_product(name="SQL Basics", price="20.00", stock_quantity=0, category_id=books.id)
        await make_product(name="Hammer", price="15.50", stock_quantity=8, category_id=tools.id,
                           description="Steel hammer for home use")
        await make_product(name="Screwdriver Set", price="30.00", stock_quantity=2, category_id=tools.id)
        await make_product(name="Gift Card", price="50.00", stock_quantity=100)
        await make_product(name="Retired Hammer", price="5.00", stock_quantity=1, category_id=tools.id,
                           is_active=False)
        return books, tools

    return seed


async def search(session, **criteria) -> ProductSearchResult:
    result = await ProductService.search_products(ProductSearchCriteria(**criteria), session)
    assert result.success is True
    return result.data


class TestSearchCriteria:

    def test_defaults(self):
        criteria = ProductSearchCriteria()

        assert criteria.page == 1
        assert criteria.page_size == 10
        assert criteria.sort_by == SortField.CREATED_AT
        assert criteria.sort_order == SortOrder.DESC

    @pytest.mark.parametrize("page, expected", [(0, 1), (-3, 1), (None, 1), (4, 4)])
    def test_page_clamped(self, page, expected):
        assert ProductSearchCriteria(page=page).page == expected

    @pytest.mark.parametrize("page_size, expected", [(0, 10), (101, 10), (None, 10), (1, 1), (100, 100)])
    def test_page_size_clamped(self, page_size, expected):
        assert ProductSearchCriteria(page_size=page_size).page_size == expected

    @pytest.mark.parametrize("sort_by, expected", [
        ("price", SortField.PRICE),
        ("NAME", SortField.NAME),
        ("created_at", SortField.CREATED_AT),
        ("stock_quantity; DROP TABLE products", SortField.CREATED_AT),
        (None, SortField.CREATED_AT),
    ])
    def test_sort_field_allow_list(self, sort_by, expected):
        assert ProductSearchCriteria(sort_by=sort_by).sort_by == expected

    @pytest.mark.parametrize("sort_order, expected", [
        ("asc", SortOrder.ASC),
        ("ASC", SortOrder.ASC),
        ("desc", SortOrder.DESC),
        ("sideways", SortOrder.DESC),
        (None, SortOrder.DESC),
    ])
    def test_sort_order(self, sort_order, expected):
        assert ProductSearchCriteria(sort_order=sort_order).sort_order == expected

    def test_blank_keyword_is_ignored(self):
        assert ProductSearchCriteria(keyword="   ").keyword is None


class TestSearchPredicates:

    def test_only_active_filter_without_parameters(self):
        assert len(build_search_predicates(ProductSearchCriteria())) == 1

    def test_one_fragment_per_supplied_parameter(self):
        criteria = ProductSearchCriteria(keyword="lamp", category_id=3, min_price=Decimal("1"),
                                         max_price=Decimal("9"), in_stock=True)

        assert len(build_search_predicates(criteria)) == 6

    def test_min_price_alone(self):
        assert len(build_search_predicates(ProductSearchCriteria(min_price=Decimal("0")))) == 2


class TestSearchProducts:

    @pytest.mark.asyncio
    async def test_unfiltered_count_equals_active_products(self, test_session, seeded_catalog):
        await seeded_catalog()

        result = await search(test_session)

        assert result.total_count == 5
        assert "Retired Hammer" not in [product.name for product in result.products]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("min_price", ["0", "15.50", "30", "1000"])
    async def test_min_price_never_increases_count(self, test_session, seeded_catalog, min_price):
        await seeded_catalog()
        unfiltered = await search(test_session)

        filtered = await search(test_session, min_price=Decimal(min_price))

        assert filtered.total_count <= unfiltered.total_count
        assert all(product.price >= Decimal(min_price) for product in filtered.products)

    @pytest.mark.asyncio
    async def test_price_bounds_inclusive(self, test_session, seeded_catalog):
        await seeded_catalog()

        result = await search(test_session, min_price=Decimal("20.00"), max_price=Decimal("45.00"),
                              sort_by="price", sort_order="ASC")

        assert [product.name for product in result.products] == ["SQL Basics", "Screwdriver Set", "Python Cookbook"]

    @pytest.mark.asyncio
    async def test_keyword_matches_description(self, test_session, seeded_catalog):
        await seeded_catalog()

        result = await search(test_session, keyword="steel")

        assert [product.name for product in result.products] == ["Hammer"]

    @pytest.mark.asyncio
    async def test_keyword_wildcards_are_literal(self, test_session, make_product):
        await make_product(name="100% Cotton Shirt")
        await make_product(name="1000 Thread Sheets")

        result = await search(test_session, keyword="0%")

        assert [product.name for product in result.products] == ["100% Cotton Shirt"]

    @pytest.mark.asyncio
    async def test_category_and_in_stock(self, test_session, seeded_catalog):
        books, _ = await seeded_catalog()

        result = await search(test_session, category_id=books.id, in_stock=True)

        assert [product.name for product in result.products] == ["Python Cookbook"]
        assert result.total_count == 1

    @pytest.mark.asyncio
    async def test_unknown_sort_field_same_as_created_at(self, test_session, seeded_catalog):
        await seeded_catalog()

        by_default = await search(test_session, sort_by="created_at")
        by_unknown = await search(test_session, sort_by="popularity")

        assert [p.id for p in by_unknown.products] == [p.id for p in by_default.products]

    @pytest.mark.asyncio
    async def test_sort_by_name_ascending(self, test_session, seeded_catalog):
        await seeded_catalog()

        result = await search(test_session, sort_by="name", sort_order="asc")

        names = [product.name for product in result.products]
        assert names == sorted(names)

    @pytest.mark.asyncio
    async def test_paging(self, test_session, seeded_catalog):
        await seeded_catalog()

        first = await search(test_session, page=1, page_size=2, sort_by="price", sort_order="ASC")
        last = await search(test_session, page=3, page_size=2, sort_by="price", sort_order="ASC")

        assert first.total_pages == 3
        assert first.has_next() is True
        assert [product.name for product in first.products] == ["Hammer", "SQL Basics"]
        assert [product.name for product in last.products] == ["Gift Card"]
        assert last.has_next() is False
        assert last.current_page == 3

    @pytest.mark.asyncio
    async def test_page_beyond_end_is_empty(self, test_session, seeded_catalog):
        await seeded_catalog()

        result = await search(test_session, page=50)

        assert result.products == []
        assert result.total_count == 5
