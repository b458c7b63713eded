import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit
from enums.error_code import ErrorCode
from exceptions import (
    ValidationException,
    ProductNotFoundException,
    ProductUnavailableException,
    OutOfStockException,
    InsufficientStockException,
    CartItemNotFoundException,
    EmptyCartException,
    InvalidCartStateException,
)
from models.cart import CartLineDTO, CartSummaryDTO
from models.operation_result import OperationResult
from models.product import ProductDTO
from repositories.cart import CartRepository
from repositories.product import ProductRepository
from utils.error_handler import service_operation

logger = logging.getLogger(__name__)


def _require_ids(**ids):
    for name, value in ids.items():
        if value is None:
            raise ValidationException("Invalid parameters", field=name)


def _line_problem(line: CartLineDTO) -> ErrorCode | None:
    """Classify why a cart line cannot be checked out, None when it can."""
    product = line.product
    if product is None or not product.is_active:
        return ErrorCode.UNAVAILABLE
    if product.stock_quantity <= 0:
        return ErrorCode.OUT_OF_STOCK
    if line.item.quantity > product.stock_quantity:
        return ErrorCode.INSUFFICIENT_STOCK
    return None


class CartService:

    @staticmethod
    async def _get_purchasable_product(product_id: int, session: AsyncSession) -> ProductDTO:
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)
        if not product.is_active:
            raise ProductUnavailableException(product_id)
        return product

    @staticmethod
    async def _load_lines(customer_id: int, session: AsyncSession) -> list[CartLineDTO]:
        cart_items = await CartRepository.get_items(customer_id, session)
        products = await ProductRepository.get_by_ids([item.product_id for item in cart_items], session)
        lines = []
        for cart_item in cart_items:
            product = products.get(cart_item.product_id)
            available = product is not None and product.is_active
            subtotal = product.price * cart_item.quantity if available else Decimal("0")
            lines.append(CartLineDTO(item=cart_item, product=product, available=available, subtotal=subtotal))
        return lines

    @staticmethod
    @service_operation("add to cart")
    async def add_to_cart(customer_id: int, product_id: int, quantity: int, session: AsyncSession) -> OperationResult:
        """
        Add a product to the customer's cart, merging into an existing line.

        A merge that would exceed stock fails as a whole and leaves the existing
        quantity untouched.
        """
        _require_ids(customer_id=customer_id, product_id=product_id)
        if quantity is None or quantity <= 0:
            raise ValidationException("Quantity must be greater than 0", field="quantity")

        product = await CartService._get_purchasable_product(product_id, session)
        if product.stock_quantity <= 0:
            raise OutOfStockException(product.id, product.name)
        if quantity > product.stock_quantity:
            raise InsufficientStockException(product.id, quantity, product.stock_quantity)

        existing = await CartRepository.get_item(customer_id, product_id, session)
        if existing is not None and existing.quantity + quantity > product.stock_quantity:
            raise InsufficientStockException(product.id, existing.quantity + quantity, product.stock_quantity)

        stored_quantity = await CartRepository.upsert_quantity(customer_id, product_id, quantity,
                                                               product.stock_quantity, session)
        if stored_quantity is None:
            # Another request merged into the line between the read above and the upsert
            current = await CartRepository.get_item(customer_id, product_id, session)
            requested = quantity + (current.quantity if current else 0)
            raise InsufficientStockException(product.id, requested, product.stock_quantity)
        await session_commit(session)

        merged = existing is not None or stored_quantity != quantity
        logger.info(f"Cart of customer {customer_id}: product {product_id} quantity now {stored_quantity}")
        cart_item = await CartRepository.get_item(customer_id, product_id, session)
        return OperationResult.ok(cart_item,
                                  message="Cart quantity updated" if merged else "Product added to cart")

    @staticmethod
    @service_operation("update cart quantity")
    async def update_quantity(customer_id: int, product_id: int, quantity: int, session: AsyncSession) -> OperationResult:
        _require_ids(customer_id=customer_id, product_id=product_id)
        if quantity is None or quantity < 0:
            raise ValidationException("Quantity must not be negative", field="quantity")

        existing = await CartRepository.get_item(customer_id, product_id, session)
        if existing is None:
            raise CartItemNotFoundException(customer_id, product_id)

        if quantity == 0:
            return await CartService.remove_from_cart(customer_id, product_id, session)

        product = await CartService._get_purchasable_product(product_id, session)
        if product.stock_quantity <= 0:
            raise OutOfStockException(product.id, product.name)
        if quantity > product.stock_quantity:
            raise InsufficientStockException(product.id, quantity, product.stock_quantity)

        updated = await CartRepository.set_quantity(customer_id, product_id, quantity, session)
        if updated == 0:
            raise CartItemNotFoundException(customer_id, product_id)
        await session_commit(session)
        cart_item = await CartRepository.get_item(customer_id, product_id, session)
        return OperationResult.ok(cart_item, message="Cart quantity updated")

    @staticmethod
    @service_operation("remove from cart")
    async def remove_from_cart(customer_id: int, product_id: int, session: AsyncSession) -> OperationResult:
        _require_ids(customer_id=customer_id, product_id=product_id)
        deleted = await CartRepository.delete_item(customer_id, product_id, session)
        if deleted == 0:
            raise CartItemNotFoundException(customer_id, product_id)
        await session_commit(session)
        return OperationResult.ok(message="Product removed from cart")

    @staticmethod
    @service_operation("clear cart")
    async def clear_cart(customer_id: int, session: AsyncSession) -> OperationResult:
        _require_ids(customer_id=customer_id)
        deleted = await CartRepository.delete_all(customer_id, session)
        if deleted == 0:
            raise EmptyCartException(customer_id)
        await session_commit(session)
        logger.info(f"Cart of customer {customer_id} cleared ({deleted} lines)")
        return OperationResult.ok({"removed_items": deleted}, message="Cart cleared")

    @staticmethod
    @service_operation("get cart")
    async def get_cart(customer_id: int, session: AsyncSession) -> OperationResult:
        """
        Read the cart joined to current product state.

        Lines whose product was deleted or deactivated stay in the cart, flagged
        unavailable and excluded from the totals.
        """
        _require_ids(customer_id=customer_id)
        lines = await CartService._load_lines(customer_id, session)
        total_quantity = 0
        total_amount = Decimal("0")
        for line in lines:
            if not line.available:
                logger.warning(f"Cart of customer {customer_id} holds unavailable product {line.item.product_id}")
                continue
            total_quantity += line.item.quantity
            total_amount += line.subtotal
        summary = CartSummaryDTO(cart_items=lines, total_quantity=total_quantity, total_amount=total_amount)
        return OperationResult.ok(summary)

    @staticmethod
    @service_operation("get cart item count")
    async def get_cart_item_count(customer_id: int, session: AsyncSession) -> OperationResult:
        _require_ids(customer_id=customer_id)
        item_count = await CartRepository.sum_quantity(customer_id, session)
        return OperationResult.ok({"item_count": item_count})

    @staticmethod
    @service_operation("check cart stock")
    async def check_stock(customer_id: int, session: AsyncSession) -> OperationResult:
        """Fails on the first line that cannot be fulfilled, naming its product."""
        _require_ids(customer_id=customer_id)
        for line in await CartService._load_lines(customer_id, session):
            problem = _line_problem(line)
            product = line.product
            if problem == ErrorCode.UNAVAILABLE:
                raise ProductUnavailableException(line.item.product_id, product.name if product else None)
            if problem == ErrorCode.OUT_OF_STOCK:
                raise OutOfStockException(product.id, product.name)
            if problem == ErrorCode.INSUFFICIENT_STOCK:
                raise InsufficientStockException(product.id, line.item.quantity, product.stock_quantity, product.name)
        return OperationResult.ok(message="All products in the cart are in stock")

    @staticmethod
    @service_operation("validate cart")
    async def validate_cart(customer_id: int, session: AsyncSession) -> OperationResult:
        _require_ids(customer_id=customer_id)
        reasons = {
            ErrorCode.UNAVAILABLE: "Cart contains unavailable products",
            ErrorCode.OUT_OF_STOCK: "Cart contains out-of-stock products",
            ErrorCode.INSUFFICIENT_STOCK: "Cart quantities exceed available stock",
        }
        for line in await CartService._load_lines(customer_id, session):
            problem = _line_problem(line)
            if problem is not None:
                raise InvalidCartStateException(reasons[problem], problem, customer_id)
        return OperationResult.ok(message="Cart is valid")
