"""
Customer and authentication exceptions.
"""

from enums.error_code import ErrorCode
from .base import ShopException, NotFoundException


class CustomerNotFoundException(NotFoundException):
    """Raised when customer is not found in database."""

    def __init__(self, customer_id: int):
        super().__init__(
            f"Customer {customer_id} not found",
            details={'customer_id': customer_id}
        )
        self.customer_id = customer_id


class UnauthorizedException(ShopException):
    """
    Raised on any credential mismatch.

    The message never says whether the username, the email or the password was wrong.
    """

    error_code = ErrorCode.UNAUTHORIZED

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class AccountDisabledException(ShopException):
    """Raised when a deactivated customer tries to log in."""

    error_code = ErrorCode.ACCOUNT_DISABLED

    def __init__(self, customer_id: int):
        super().__init__(
            "Account has been disabled, please contact support",
            details={'customer_id': customer_id}
        )
        self.customer_id = customer_id


class ForbiddenException(ShopException):
    """Raised when a logged-in customer calls an admin-only operation."""

    error_code = ErrorCode.FORBIDDEN

    def __init__(self, message: str = "Administrator privileges required"):
        super().__init__(message)
