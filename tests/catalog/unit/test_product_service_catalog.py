"""
Unit Tests: ProductService catalog writes and reads
"""

from decimal import Decimal

import pytest

from enums.error_code import ErrorCode
from models.product import ProductDTO
from services.product import ProductService


def new_product(**overrides) -> ProductDTO:
    values = dict(name="Desk Lamp", sku="LAMP-001", price=Decimal("24.90"), stock_quantity=5)
    values.update(overrides)
    return ProductDTO(**values)


class TestCreateProduct:

    @pytest.mark.asyncio
    async def test_create_and_read_back(self, test_session, make_category):
        category = await make_category(name="Lighting")

        result = await ProductService.create_product(new_product(category_id=category.id, images=["a.png", "b.png"]),
                                                     test_session)

        assert result.success is True
        created = result.data
        assert created.id is not None
        assert created.price == Decimal("24.90")
        assert created.images == ["a.png", "b.png"]
        assert created.is_active is True

        detail = await ProductService.get_product(created.id, test_session)
        assert detail.data.category.name == "Lighting"
        assert detail.data.is_in_stock() is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides, field_hint", [
        ({"name": ""}, "name"),
        ({"name": "x" * 201}, "name"),
        ({"sku": "  "}, "SKU"),
        ({"sku": "S" * 101}, "SKU"),
        ({"price": Decimal("-0.01")}, "Price"),
        ({"price": None}, "Price"),
        ({"cost_price": Decimal("-1")}, "Cost price"),
        ({"stock_quantity": -1}, "Stock"),
        ({"min_stock_level": -1}, "Minimum stock"),
    ])
    async def test_validation_names_first_rule(self, test_session, overrides, field_hint):
        result = await ProductService.create_product(new_product(**overrides), test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert field_hint in result.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides, message", [
        ({"price": Decimal("19.999")}, "Price must have at most 2 decimal places"),
        ({"price": Decimal("100000000")}, "Price must be less than 100000000"),
        ({"cost_price": Decimal("5.001")}, "Cost price must have at most 2 decimal places"),
        ({"cost_price": Decimal("123456789.00")}, "Cost price must be less than 100000000"),
    ])
    async def test_money_is_never_rounded(self, test_session, overrides, message):
        result = await ProductService.create_product(new_product(**overrides), test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.message == message
        lookup = await ProductService.get_product_by_sku("LAMP-001", test_session)
        assert lookup.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", ["0", "19.9", "19.90", "19.9000", "99999999.99"])
    async def test_money_at_cent_precision_accepted(self, test_session, price):
        result = await ProductService.create_product(new_product(price=Decimal(price)), test_session)

        assert result.success is True
        assert result.data.price == Decimal(price)

    @pytest.mark.asyncio
    async def test_duplicate_sku_conflict(self, test_session, make_product):
        await make_product(sku="LAMP-001", is_active=False)

        result = await ProductService.create_product(new_product(sku="LAMP-001"), test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.CONFLICT

    @pytest.mark.asyncio
    async def test_inactive_category_rejected(self, test_session, make_category):
        category = await make_category(name="Old", is_active=False)

        result = await ProductService.create_product(new_product(category_id=category.id), test_session)

        assert result.error_code == ErrorCode.NOT_FOUND
        assert "disabled" in result.message


class TestUpdateProduct:

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, test_session, make_product):
        product = await make_product(name="Old Name", price="10.00", stock_quantity=4, sku="KEEP-1")

        result = await ProductService.update_product(product.id, {"name": "New Name"}, test_session)

        assert result.success is True
        assert result.data.name == "New Name"
        assert result.data.price == Decimal("10.00")
        assert result.data.sku == "KEEP-1"
        assert result.data.stock_quantity == 4

    @pytest.mark.asyncio
    async def test_own_sku_is_not_a_conflict(self, test_session, make_product):
        product = await make_product(sku="SAME-1")

        result = await ProductService.update_product(product.id, {"sku": "SAME-1", "price": Decimal("3.00")},
                                                     test_session)

        assert result.success is True

    @pytest.mark.asyncio
    async def test_sku_of_other_product_conflicts(self, test_session, make_product):
        await make_product(sku="TAKEN-1")
        product = await make_product(sku="MINE-1")

        result = await ProductService.update_product(product.id, {"sku": "TAKEN-1"}, test_session)

        assert result.error_code == ErrorCode.CONFLICT

    @pytest.mark.asyncio
    async def test_update_missing_product(self, test_session):
        result = await ProductService.update_product(404, {"name": "Ghost"}, test_session)

        assert result.error_code == ErrorCode.NOT_FOUND


class TestStockAndDelete:

    @pytest.mark.asyncio
    async def test_update_stock(self, test_session, make_product):
        product = await make_product(stock_quantity=1)

        result = await ProductService.update_product_stock(product.id, 40, test_session)

        assert result.success is True
        assert result.data.stock_quantity == 40

    @pytest.mark.asyncio
    async def test_negative_stock_rejected(self, test_session, make_product):
        product = await make_product(stock_quantity=1)

        result = await ProductService.update_product_stock(product.id, -1, test_session)

        assert result.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_stock_of_missing_product(self, test_session):
        result = await ProductService.update_product_stock(77, 3, test_session)

        assert result.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_delete_is_soft(self, test_session, make_product):
        product = await make_product(sku="SOFT-1")

        deleted = await ProductService.delete_product(product.id, test_session)
        detail = await ProductService.get_product(product.id, test_session)
        by_sku = await ProductService.get_product_by_sku("SOFT-1", test_session)
        recreate = await ProductService.create_product(new_product(sku="SOFT-1"), test_session)

        assert deleted.success is True
        assert detail.error_code == ErrorCode.NOT_FOUND
        assert by_sku.error_code == ErrorCode.NOT_FOUND
        # The row still exists, so its SKU stays reserved
        assert recreate.error_code == ErrorCode.CONFLICT

    @pytest.mark.asyncio
    async def test_delete_missing_product(self, test_session):
        result = await ProductService.delete_product(12345, test_session)

        assert result.error_code == ErrorCode.NOT_FOUND


class TestCatalogReads:

    @pytest.mark.asyncio
    async def test_get_by_sku(self, test_session, make_product):
        await make_product(name="Mug", sku="MUG-01")

        result = await ProductService.get_product_by_sku("MUG-01", test_session)

        assert result.data.name == "Mug"

    @pytest.mark.asyncio
    async def test_list_products_page_info(self, test_session, make_product):
        for index in range(5):
            await make_product(name=f"Item {index}")
        await make_product(name="Hidden", is_active=False)

        result = await ProductService.list_products(2, 2, test_session)

        page_info = result.data["page_info"]
        assert len(result.data["products"]) == 2
        assert (page_info.page, page_info.page_size, page_info.total_count, page_info.total_pages) == (2, 2, 5, 3)

    @pytest.mark.asyncio
    async def test_list_products_clamps_paging(self, test_session):
        result = await ProductService.list_products(0, 500, test_session)

        page_info = result.data["page_info"]
        assert (page_info.page, page_info.page_size) == (1, 10)

    @pytest.mark.asyncio
    async def test_list_by_category(self, test_session, make_category, make_product):
        category = await make_category(name="Garden")
        await make_product(name="Rake", category_id=category.id)
        await make_product(name="Hose", category_id=category.id)
        await make_product(name="Old Shovel", category_id=category.id, is_active=False)
        await make_product(name="Unrelated")

        result = await ProductService.list_products_by_category(category.id, None, None, test_session)
        missing = await ProductService.list_products_by_category(999, 1, 10, test_session)

        assert [product.name for product in result.data["products"]] == ["Hose", "Rake"]
        assert all(product.category.name == "Garden" for product in result.data["products"])
        assert result.data["category_id"] == category.id
        assert result.data["page_info"].total_count == 2
        assert missing.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page, page_size, expected_names, expected_page_info", [
        (1, 2, ["Item 0", "Item 1"], (1, 2, 5, 3)),
        (3, 2, ["Item 4"], (3, 2, 5, 3)),
        (4, 2, [], (4, 2, 5, 3)),
        (0, 500, ["Item 0", "Item 1", "Item 2", "Item 3", "Item 4"], (1, 10, 5, 1)),
    ])
    async def test_list_by_category_pages(self, test_session, make_category, make_product,
                                          page, page_size, expected_names, expected_page_info):
        category = await make_category(name="Tools")
        for index in range(5):
            await make_product(name=f"Item {index}", category_id=category.id)
        await make_product(name="Elsewhere")

        result = await ProductService.list_products_by_category(category.id, page, page_size, test_session)

        page_info = result.data["page_info"]
        assert [product.name for product in result.data["products"]] == expected_names
        assert (page_info.page, page_info.page_size, page_info.total_count, page_info.total_pages) == expected_page_info

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit, expected", [(2, 2), (0, 10), (51, 10), (None, 10)])
    async def test_featured_limit(self, test_session, make_product, limit, expected):
        for index in range(12):
            await make_product(name=f"Featured {index}", is_featured=True)
        await make_product(name="Plain")

        result = await ProductService.get_featured_products(limit, test_session)

        assert len(result.data) == expected
        assert all(product.is_featured for product in result.data)

    @pytest.mark.asyncio
    async def test_low_stock(self, test_session, make_product):
        await make_product(name="Plenty", stock_quantity=50, min_stock_level=5)
        await make_product(name="At Threshold", stock_quantity=5, min_stock_level=5)
        await make_product(name="Empty", stock_quantity=0, min_stock_level=1)
        await make_product(name="Inactive Empty", stock_quantity=0, min_stock_level=1, is_active=False)

        result = await ProductService.get_low_stock_products(test_session)

        assert [product.name for product in result.data] == ["Empty", "At Threshold"]
        assert all(product.is_low_stock() for product in result.data)
