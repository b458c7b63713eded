"""
Custom exceptions for the e-shop backend.

Exception Hierarchy:
--------------------
ShopException (base)
├── ValidationException
├── NotFoundException
│   ├── ProductNotFoundException
│   ├── CategoryNotFoundException
│   ├── CustomerNotFoundException
│   └── CartItemNotFoundException
├── ConflictException
│   ├── DuplicateSkuException
│   └── CategoryInUseException
├── ProductUnavailableException
├── CartException
│   ├── EmptyCartException
│   ├── OutOfStockException
│   ├── InsufficientStockException
│   └── InvalidCartStateException
├── UnauthorizedException
├── AccountDisabledException
├── ForbiddenException
└── StorageException

Usage:
------
Services raise specific exceptions internally:
    raise InsufficientStockException(product_id=1, requested=6, available=5)

The service_operation decorator (utils/error_handler.py) turns them into a
failed OperationResult at the service boundary.
"""

from .base import ShopException, ValidationException, NotFoundException, ConflictException, StorageException
from .cart import (
    CartException,
    CartItemNotFoundException,
    EmptyCartException,
    OutOfStockException,
    InsufficientStockException,
    InvalidCartStateException,
)
from .catalog import (
    ProductNotFoundException,
    ProductUnavailableException,
    DuplicateSkuException,
    CategoryNotFoundException,
    CategoryInUseException,
)
from .customer import CustomerNotFoundException, UnauthorizedException, AccountDisabledException, ForbiddenException

__all__ = [
    # Base
    'ShopException',
    'ValidationException',
    'NotFoundException',
    'ConflictException',
    'StorageException',

    # Cart
    'CartException',
    'CartItemNotFoundException',
    'EmptyCartException',
    'OutOfStockException',
    'InsufficientStockException',
    'InvalidCartStateException',

    # Catalog
    'ProductNotFoundException',
    'ProductUnavailableException',
    'DuplicateSkuException',
    'CategoryNotFoundException',
    'CategoryInUseException',

    # Customer
    'CustomerNotFoundException',
    'UnauthorizedException',
    'AccountDisabledException',
    'ForbiddenException',
]
