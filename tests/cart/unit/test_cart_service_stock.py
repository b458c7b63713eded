"""
Unit Tests: CartService

Tests for services/cart.py covering:
- add_to_cart() - stock validation and merge-on-add
- update_quantity() / remove_from_cart() / clear_cart()
- get_cart() / get_cart_item_count() - totals and stale lines
- check_stock() / validate_cart() - pre-checkout scans
- duplicate add racing past the existence check
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from enums.error_code import ErrorCode
from models.product import Product
from repositories.cart import CartRepository
from services.cart import CartService


class TestAddToCart:

    @pytest.mark.asyncio
    async def test_add_new_product_creates_line(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(stock_quantity=10)

        result = await CartService.add_to_cart(customer.id, product.id, 2, test_session)

        assert result.success is True
        assert result.message == "Product added to cart"
        rows = await cart_rows(customer.id)
        assert len(rows) == 1
        assert rows[0].quantity == 2

    @pytest.mark.asyncio
    async def test_stock_five_scenario(self, test_session, make_customer, make_product, cart_rows):
        """3 fits, 3 more would make 6 > 5 and is refused whole, 2 more makes exactly 5."""
        customer = await make_customer()
        product = await make_product(stock_quantity=5)

        first = await CartService.add_to_cart(customer.id, product.id, 3, test_session)
        assert first.success is True

        second = await CartService.add_to_cart(customer.id, product.id, 3, test_session)
        assert second.success is False
        assert second.error_code == ErrorCode.INSUFFICIENT_STOCK
        assert "current stock: 5" in second.message
        rows = await cart_rows(customer.id)
        assert [row.quantity for row in rows] == [3]

        third = await CartService.add_to_cart(customer.id, product.id, 2, test_session)
        assert third.success is True
        assert third.message == "Cart quantity updated"
        rows = await cart_rows(customer.id)
        assert [row.quantity for row in rows] == [5]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_non_positive_quantity_rejected(self, test_session, make_customer, make_product, quantity):
        customer = await make_customer()
        product = await make_product()

        result = await CartService.add_to_cart(customer.id, product.id, quantity, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_missing_ids_rejected(self, test_session):
        result = await CartService.add_to_cart(None, 1, 1, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_unknown_product(self, test_session, make_customer):
        customer = await make_customer()

        result = await CartService.add_to_cart(customer.id, 9999, 1, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_inactive_product(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(is_active=False)

        result = await CartService.add_to_cart(customer.id, product.id, 1, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.UNAVAILABLE
        assert await cart_rows(customer.id) == []

    @pytest.mark.asyncio
    async def test_out_of_stock_product(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product(name="Sold Out Lamp", stock_quantity=0)

        result = await CartService.add_to_cart(customer.id, product.id, 1, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.OUT_OF_STOCK
        assert "Sold Out Lamp" in result.message

    @pytest.mark.asyncio
    async def test_raw_quantity_above_stock(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(stock_quantity=4)

        result = await CartService.add_to_cart(customer.id, product.id, 5, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.INSUFFICIENT_STOCK
        assert result.message == "Insufficient stock, current stock: 4"
        assert await cart_rows(customer.id) == []

    @pytest.mark.asyncio
    async def test_stored_quantity_never_exceeds_stock(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(stock_quantity=7)

        for quantity in (2, 4, 3, 1, 5):
            await CartService.add_to_cart(customer.id, product.id, quantity, test_session)
            rows = await cart_rows(customer.id)
            assert len(rows) == 1
            assert 0 < rows[0].quantity <= 7

        rows = await cart_rows(customer.id)
        assert rows[0].quantity == 7


class TestConcurrentAdd:
    """
    The existence check and the write are separate statements. These tests make
    the check miss an already existing row, as a concurrent request would.
    """

    @pytest.mark.asyncio
    async def test_stale_check_still_merges_into_one_row(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(stock_quantity=10)
        await CartService.add_to_cart(customer.id, product.id, 2, test_session)

        with patch.object(CartRepository, "get_item", AsyncMock(return_value=None)):
            result = await CartService.add_to_cart(customer.id, product.id, 3, test_session)

        assert result.success is True
        assert result.message == "Cart quantity updated"
        rows = await cart_rows(customer.id)
        assert len(rows) == 1
        assert rows[0].quantity == 5

    @pytest.mark.asyncio
    async def test_stale_check_cannot_exceed_stock(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(stock_quantity=5)
        await CartService.add_to_cart(customer.id, product.id, 4, test_session)

        with patch.object(CartRepository, "get_item", AsyncMock(return_value=None)):
            result = await CartService.add_to_cart(customer.id, product.id, 3, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.INSUFFICIENT_STOCK
        rows = await cart_rows(customer.id)
        assert [row.quantity for row in rows] == [4]


class TestUpdateAndRemove:

    @pytest.mark.asyncio
    async def test_update_quantity_overwrites(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(stock_quantity=10)
        await CartService.add_to_cart(customer.id, product.id, 2, test_session)

        result = await CartService.update_quantity(customer.id, product.id, 7, test_session)

        assert result.success is True
        assert (await cart_rows(customer.id))[0].quantity == 7

    @pytest.mark.asyncio
    async def test_update_to_zero_removes_line(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product()
        await CartService.add_to_cart(customer.id, product.id, 2, test_session)

        result = await CartService.update_quantity(customer.id, product.id, 0, test_session)

        assert result.success is True
        assert result.message == "Product removed from cart"
        assert await cart_rows(customer.id) == []

    @pytest.mark.asyncio
    async def test_update_negative_rejected(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product()
        await CartService.add_to_cart(customer.id, product.id, 1, test_session)

        result = await CartService.update_quantity(customer.id, product.id, -2, test_session)

        assert result.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_update_line_not_in_cart(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product()

        result = await CartService.update_quantity(customer.id, product.id, 2, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.NOT_FOUND
        assert result.message == "Product is not in the cart"

    @pytest.mark.asyncio
    async def test_update_above_stock_keeps_quantity(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        product = await make_product(stock_quantity=3)
        await CartService.add_to_cart(customer.id, product.id, 2, test_session)

        result = await CartService.update_quantity(customer.id, product.id, 4, test_session)

        assert result.error_code == ErrorCode.INSUFFICIENT_STOCK
        assert (await cart_rows(customer.id))[0].quantity == 2

    @pytest.mark.asyncio
    async def test_update_deactivated_product(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product()
        await CartService.add_to_cart(customer.id, product.id, 1, test_session)
        await test_session.execute(update(Product).where(Product.id == product.id).values(is_active=False))
        await test_session.commit()

        result = await CartService.update_quantity(customer.id, product.id, 2, test_session)

        assert result.error_code == ErrorCode.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_remove_twice(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product()
        await CartService.add_to_cart(customer.id, product.id, 1, test_session)

        first = await CartService.remove_from_cart(customer.id, product.id, test_session)
        second = await CartService.remove_from_cart(customer.id, product.id, test_session)

        assert first.success is True
        assert second.success is False
        assert second.error_code == ErrorCode.NOT_FOUND


class TestClearAndGet:

    @pytest.mark.asyncio
    async def test_clear_then_get_is_empty(self, test_session, make_customer, make_product):
        customer = await make_customer()
        for stock in (5, 6):
            product = await make_product(stock_quantity=stock)
            await CartService.add_to_cart(customer.id, product.id, 1, test_session)

        cleared = await CartService.clear_cart(customer.id, test_session)
        cart = await CartService.get_cart(customer.id, test_session)

        assert cleared.success is True
        assert cleared.data == {"removed_items": 2}
        assert cart.data.cart_items == []
        assert cart.data.total_quantity == 0
        assert cart.data.total_amount == Decimal("0")

    @pytest.mark.asyncio
    async def test_clear_empty_cart(self, test_session, make_customer):
        customer = await make_customer()

        result = await CartService.clear_cart(customer.id, test_session)

        assert result.success is False
        assert result.message == "Cart is already empty"

    @pytest.mark.asyncio
    async def test_get_cart_totals(self, test_session, make_customer, make_product):
        customer = await make_customer()
        pen = await make_product(name="Pen", price="1.10")
        book = await make_product(name="Book", price="12.35")
        await CartService.add_to_cart(customer.id, pen.id, 3, test_session)
        await CartService.add_to_cart(customer.id, book.id, 2, test_session)

        result = await CartService.get_cart(customer.id, test_session)

        assert result.success is True
        assert result.data.total_quantity == 5
        assert result.data.total_amount == Decimal("28.00")
        assert [line.product.name for line in result.data.cart_items] == ["Pen", "Book"]
        assert result.data.cart_items[0].subtotal == Decimal("3.30")

    @pytest.mark.asyncio
    async def test_stale_line_flagged_and_kept(self, test_session, make_customer, make_product, cart_rows):
        customer = await make_customer()
        kept = await make_product(price="5.00")
        retired = await make_product(price="99.00")
        await CartService.add_to_cart(customer.id, kept.id, 1, test_session)
        await CartService.add_to_cart(customer.id, retired.id, 1, test_session)
        await test_session.execute(update(Product).where(Product.id == retired.id).values(is_active=False))
        await test_session.commit()

        result = await CartService.get_cart(customer.id, test_session)

        availability = {line.item.product_id: line.available for line in result.data.cart_items}
        assert availability == {kept.id: True, retired.id: False}
        assert result.data.total_quantity == 1
        assert result.data.total_amount == Decimal("5.00")
        assert len(await cart_rows(customer.id)) == 2

    @pytest.mark.asyncio
    async def test_item_count(self, test_session, make_customer, make_product):
        customer = await make_customer()
        empty = await CartService.get_cart_item_count(customer.id, test_session)
        for quantity in (2, 3):
            product = await make_product()
            await CartService.add_to_cart(customer.id, product.id, quantity, test_session)

        result = await CartService.get_cart_item_count(customer.id, test_session)

        assert empty.data == {"item_count": 0}
        assert result.data == {"item_count": 5}


class TestStockChecks:

    @pytest.mark.asyncio
    async def test_check_stock_all_fine(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product(stock_quantity=3)
        await CartService.add_to_cart(customer.id, product.id, 3, test_session)

        result = await CartService.check_stock(customer.id, test_session)
        validation = await CartService.validate_cart(customer.id, test_session)

        assert result.success is True
        assert validation.success is True

    @pytest.mark.asyncio
    async def test_check_stock_names_under_stocked_product(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product(name="Desk Chair", stock_quantity=5)
        await CartService.add_to_cart(customer.id, product.id, 4, test_session)
        # Stock sold elsewhere after the line was added
        await test_session.execute(update(Product).where(Product.id == product.id).values(stock_quantity=2))
        await test_session.commit()

        result = await CartService.check_stock(customer.id, test_session)
        validation = await CartService.validate_cart(customer.id, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.INSUFFICIENT_STOCK
        assert "Desk Chair" in result.message
        assert "current stock: 2" in result.message
        assert validation.success is False
        assert validation.message == "Cart quantities exceed available stock"

    @pytest.mark.asyncio
    async def test_check_stock_out_of_stock_and_inactive(self, test_session, make_customer, make_product):
        customer = await make_customer()
        product = await make_product(name="Kettle", stock_quantity=5)
        await CartService.add_to_cart(customer.id, product.id, 1, test_session)

        await test_session.execute(update(Product).where(Product.id == product.id).values(stock_quantity=0))
        await test_session.commit()
        out_of_stock = await CartService.check_stock(customer.id, test_session)
        out_of_stock_validation = await CartService.validate_cart(customer.id, test_session)

        await test_session.execute(update(Product).where(Product.id == product.id).values(is_active=False))
        await test_session.commit()
        inactive = await CartService.check_stock(customer.id, test_session)
        inactive_validation = await CartService.validate_cart(customer.id, test_session)

        assert out_of_stock.error_code == ErrorCode.OUT_OF_STOCK
        assert "Kettle" in out_of_stock.message
        assert out_of_stock_validation.message == "Cart contains out-of-stock products"
        assert inactive.error_code == ErrorCode.UNAVAILABLE
        assert "Kettle" in inactive.message
        assert inactive_validation.message == "Cart contains unavailable products"


class TestStorageFailures:

    @pytest.mark.asyncio
    async def test_database_error_becomes_generic_failure(self, test_session, make_customer):
        customer = await make_customer()
        failing = AsyncMock(side_effect=OperationalError("DELETE FROM cart_items", {}, Exception("disk I/O error")))

        with patch.object(CartRepository, "delete_all", failing):
            result = await CartService.clear_cart(customer.id, test_session)

        assert result.success is False
        assert result.error_code == ErrorCode.STORAGE_ERROR
        assert "disk" not in result.message
        assert "DELETE" not in result.message
