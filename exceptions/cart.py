"""
Cart-related exceptions.
"""

from enums.error_code import ErrorCode
from .base import ShopException, NotFoundException


class CartException(ShopException):
    """Base exception for cart-related errors."""
    pass


class CartItemNotFoundException(NotFoundException):
    """Raised when the customer has no cart line for a product."""

    def __init__(self, customer_id: int, product_id: int):
        super().__init__(
            "Product is not in the cart",
            details={'customer_id': customer_id, 'product_id': product_id}
        )
        self.customer_id = customer_id
        self.product_id = product_id


class EmptyCartException(CartException):
    """Raised when clearing a cart that has no lines."""

    error_code = ErrorCode.NOT_FOUND

    def __init__(self, customer_id: int):
        super().__init__(
            "Cart is already empty",
            details={'customer_id': customer_id}
        )
        self.customer_id = customer_id


class OutOfStockException(CartException):
    """Raised when a product has no stock at all."""

    error_code = ErrorCode.OUT_OF_STOCK

    def __init__(self, product_id: int, product_name: str | None = None):
        name = f"'{product_name}'" if product_name else str(product_id)
        super().__init__(
            f"Product {name} is out of stock",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class InsufficientStockException(CartException):
    """Raised when requested quantity exceeds the available stock."""

    error_code = ErrorCode.INSUFFICIENT_STOCK

    def __init__(self, product_id: int, requested: int, available: int, product_name: str | None = None):
        prefix = f"Product '{product_name}' has insufficient stock" if product_name else "Insufficient stock"
        super().__init__(
            f"{prefix}, current stock: {available}",
            details={'product_id': product_id, 'requested': requested, 'available': available}
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidCartStateException(CartException):
    """Raised by the pre-checkout validation when any cart line cannot be fulfilled."""

    def __init__(self, reason: str, error_code: ErrorCode, customer_id: int | None = None):
        super().__init__(reason, details={'customer_id': customer_id} if customer_id is not None else None)
        # One exception type covers every failing line category
        self.error_code = error_code
        self.reason = reason
