"""
Product and category exceptions.
"""

from enums.error_code import ErrorCode
from .base import ShopException, NotFoundException, ConflictException


class ProductNotFoundException(NotFoundException):
    """Raised when product is not found in database."""

    def __init__(self, product_id: int | None = None, sku: str | None = None):
        if product_id is not None:
            message = f"Product {product_id} not found"
            details = {'product_id': product_id}
        elif sku:
            message = f"Product with SKU {sku} not found"
            details = {'sku': sku}
        else:
            message = "Product not found"
            details = {}

        super().__init__(message, details)
        self.product_id = product_id
        self.sku = sku


class ProductUnavailableException(ShopException):
    """Raised when a product exists but has been deactivated."""

    error_code = ErrorCode.UNAVAILABLE

    def __init__(self, product_id: int, product_name: str | None = None):
        name = f" '{product_name}'" if product_name else ""
        super().__init__(
            f"Product{name} does not exist or is no longer available",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class DuplicateSkuException(ConflictException):
    """Raised when another product already uses the SKU."""

    def __init__(self, sku: str):
        super().__init__(
            f"SKU {sku} is already in use",
            details={'sku': sku}
        )
        self.sku = sku


class CategoryNotFoundException(NotFoundException):
    """Raised when category is missing or inactive."""

    def __init__(self, category_id: int):
        super().__init__(
            f"Category {category_id} does not exist or is disabled",
            details={'category_id': category_id}
        )
        self.category_id = category_id


class CategoryInUseException(ConflictException):
    """Raised when deleting a category that still has active children or products."""

    def __init__(self, category_id: int, reason: str):
        super().__init__(
            f"Category {category_id} cannot be deleted: {reason}",
            details={'category_id': category_id, 'reason': reason}
        )
        self.category_id = category_id
        self.reason = reason
