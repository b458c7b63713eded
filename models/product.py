from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, CheckConstraint, JSON, func

from models.base import Base
from models.category import CategoryDTO


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    short_description = Column(String(500), nullable=True)
    # Unique across active and deactivated products
    sku = Column(String(100), nullable=False, unique=True)
    price = Column(Numeric(10, 2), nullable=False)
    cost_price = Column(Numeric(10, 2), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=0)
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=True)
    image_url = Column(String(500), nullable=True)
    images = Column(JSON, nullable=False, default=list)
    weight = Column(Numeric(10, 3), nullable=True)
    dimensions = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_non_negative'),
        CheckConstraint('cost_price IS NULL OR cost_price >= 0', name='check_cost_price_non_negative'),
        CheckConstraint('stock_quantity >= 0', name='check_stock_non_negative'),
        CheckConstraint('min_stock_level >= 0', name='check_min_stock_non_negative'),
    )


# Columns an admin may write through create/update; timestamps and id are managed by the database
PRODUCT_WRITABLE_FIELDS = {
    'name', 'description', 'short_description', 'sku', 'price', 'cost_price',
    'stock_quantity', 'min_stock_level', 'category_id', 'image_url', 'images',
    'weight', 'dimensions', 'is_active', 'is_featured',
}


class ProductDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None
    stock_quantity: int = 0
    min_stock_level: int = 0
    category_id: int | None = None
    image_url: str | None = None
    images: list[str] | None = None
    weight: Decimal | None = None
    dimensions: str | None = None
    is_active: bool | None = None
    is_featured: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Attached by ProductService for display, never persisted
    category: CategoryDTO | None = None

    def is_in_stock(self) -> bool:
        return self.stock_quantity > 0

    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_level
