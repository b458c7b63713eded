"""
Base exception classes for the e-shop backend.
"""

from enums.error_code import ErrorCode


class ShopException(Exception):
    """
    Base exception for all shop errors.

    All domain exceptions inherit from this class so a service boundary can
    catch them with a single handler and turn them into an OperationResult.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, quantities, etc.)
        error_code: Failure category reported to API callers
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ValidationException(ShopException):
    """Raised when caller input violates a validation rule."""

    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, details={'field': field} if field else None)
        self.field = field


class NotFoundException(ShopException):
    """Raised when a referenced entity does not exist."""

    error_code = ErrorCode.NOT_FOUND


class ConflictException(ShopException):
    """Raised when a uniqueness or relational constraint would be violated."""

    error_code = ErrorCode.CONFLICT


class StorageException(ShopException):
    """
    Raised when the persistence layer fails.

    The message is always generic; technical detail goes to the log only.
    """

    error_code = ErrorCode.STORAGE_ERROR

    def __init__(self, message: str = "Operation failed, please try again later", details: dict | None = None):
        super().__init__(message, details)
