"""
Error Handler Utility for Service Operations

Provides centralized error handling at the service boundary with:
- Automatic exception to OperationResult mapping
- Consistent, generic messages for storage failures
- Session rollback when the database fails mid-operation
- Logging for debugging

Usage in services:
    from utils.error_handler import service_operation

    class ProductService:

        @staticmethod
        @service_operation("get product")
        async def get_product(product_id: int, session: AsyncSession) -> OperationResult:
            ...
            return OperationResult.ok(product)
"""

import functools
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_rollback
from enums.error_code import ErrorCode
from exceptions import ShopException, StorageException
from models.operation_result import OperationResult

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "Internal server error"


def handle_service_error(exception: ShopException, action: str | None = None) -> OperationResult:
    """
    Convert a domain exception into a failed OperationResult.

    Domain failures are expected outcomes (bad input, missing product, not enough
    stock), so they are logged at WARNING without a traceback.
    """
    prefix = f"{action}: " if action else ""
    logger.warning(f"{prefix}{type(exception).__name__} - {exception.message} {exception.details or ''}".rstrip())
    return OperationResult.fail(exception.message, exception.error_code)


def handle_storage_error(exception: SQLAlchemyError, action: str | None = None) -> OperationResult:
    """
    Convert a database failure into a generic failed OperationResult.

    The SQL error text stays in the log; callers only see StorageException's message.
    """
    logger.error(f"Database error during {action or 'service operation'}: {type(exception).__name__}", exc_info=True)
    storage_exception = StorageException()
    return OperationResult.fail(storage_exception.message, storage_exception.error_code)


def handle_unexpected_error(exception: Exception, action: str | None = None) -> OperationResult:
    """
    Handle unexpected exceptions (non-ShopException).

    Note:
        Also logs the full exception for debugging
    """
    logger.error(f"Unexpected error during {action or 'request'}: {type(exception).__name__} - {str(exception)}",
                 exc_info=True)
    return OperationResult.fail(UNEXPECTED_ERROR_MESSAGE, ErrorCode.INTERNAL_ERROR)


def _find_session(args: tuple, kwargs: dict) -> AsyncSession | None:
    session = kwargs.get('session')
    if isinstance(session, AsyncSession):
        return session
    for arg in args:
        if isinstance(arg, AsyncSession):
            return arg
    return None


def service_operation(action: str):
    """
    Decorator for public service methods.

    Domain exceptions become failed OperationResults, SQLAlchemy errors roll back
    the session and become a generic storage failure. Anything else propagates
    to the web layer's catch-all handler.

    Usage:
        @staticmethod
        @service_operation("add to cart")
        async def add_to_cart(customer_id, product_id, quantity, session): ...
    """
    def decorator(service_func):
        @functools.wraps(service_func)
        async def wrapper(*args, **kwargs) -> OperationResult:
            try:
                return await service_func(*args, **kwargs)
            except ShopException as e:
                return handle_service_error(e, action)
            except SQLAlchemyError as e:
                session = _find_session(args, kwargs)
                if session is not None:
                    try:
                        await session_rollback(session)
                    except SQLAlchemyError:
                        logger.error(f"Rollback failed during {action}", exc_info=True)
                return handle_storage_error(e, action)

        return wrapper
    return decorator
