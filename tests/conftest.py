"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import os
import sys
from decimal import Decimal

# Configure the TEST environment before config.py is imported anywhere
os.environ["RUNTIME_ENVIRONMENT"] = "TEST"
os.environ.setdefault("SESSION_SECRET", "test_session_secret_0123456789abcdef0123456789abcdef")
# Lowest bcrypt work factor keeps hashing fast in tests
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["ADMIN_USERNAME_LIST"] = ""

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import pytest_asyncio
from sqlalchemy import select

from db import Database
from models.cartItem import CartItem
from models.category import Category
from models.customer import Customer
from models.product import Product


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def test_database():
    """In-memory SQLite database with all tables created."""
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def test_session(test_database):
    async with test_database.session() as session:
        yield session
        await session.rollback()


# ============================================================================
# Data Factories
# ============================================================================

@pytest.fixture
def make_category(test_session):
    async def factory(name: str = "Electronics", parent_id: int | None = None, sort_order: int = 0,
                      is_active: bool = True) -> Category:
        category = Category(name=name, parent_id=parent_id, sort_order=sort_order, is_active=is_active)
        test_session.add(category)
        await test_session.commit()
        return category

    return factory


@pytest.fixture
def make_product(test_session):
    counter = {"value": 0}

    async def factory(name: str = "Test Product", price: str = "10.00", stock_quantity: int = 10,
                      category_id: int | None = None, is_active: bool = True, **kwargs) -> Product:
        counter["value"] += 1
        product = Product(name=name,
                          sku=kwargs.pop("sku", f"SKU-{counter['value']:04d}"),
                          price=Decimal(price),
                          stock_quantity=stock_quantity,
                          category_id=category_id,
                          is_active=is_active,
                          **kwargs)
        test_session.add(product)
        await test_session.commit()
        return product

    return factory


@pytest.fixture
def make_customer(test_session):
    counter = {"value": 0}

    async def factory(username: str | None = None, is_active: bool = True) -> Customer:
        counter["value"] += 1
        username = username or f"customer{counter['value']}"
        customer = Customer(username=username,
                            email=f"{username}@example.com",
                            # Not a valid bcrypt hash; these customers never log in
                            password_hash="not-a-real-hash",
                            first_name="Test",
                            last_name="Customer",
                            is_active=is_active)
        test_session.add(customer)
        await test_session.commit()
        return customer

    return factory


@pytest.fixture
def cart_rows(test_session):
    """Read the raw cart_items rows of a customer."""
    async def reader(customer_id: int) -> list[CartItem]:
        result = await test_session.execute(
            select(CartItem)
            .where(CartItem.customer_id == customer_id)
            .order_by(CartItem.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    return reader
