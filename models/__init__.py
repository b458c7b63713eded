"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for the metadata to know every table.
"""

from models.base import Base
from models.category import Category
from models.product import Product
from models.customer import Customer
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem

__all__ = [
    'Base',
    'Category',
    'Product',
    'Customer',
    'CartItem',
    'Order',
    'OrderItem',
]
