"""Request bodies. Clients send camelCase keys; snake_case is accepted too."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Quantities and stock are stored as 32-bit signed integers
MAX_INT32 = 2_147_483_647


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AddToCartRequest(RequestModel):
    product_id: int | None = None
    quantity: int = Field(1, le=MAX_INT32)


class UpdateCartQuantityRequest(RequestModel):
    quantity: int = Field(..., le=MAX_INT32)


class RegisterRequest(RequestModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None


class LoginRequest(RequestModel):
    # Username or email
    username: str | None = None
    password: str | None = None


class ChangePasswordRequest(RequestModel):
    current_password: str | None = None
    new_password: str | None = None


class UpdateProfileRequest(RequestModel):
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None


class ProductCreateRequest(RequestModel):
    name: str | None = None
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None
    stock_quantity: int = Field(0, le=MAX_INT32)
    min_stock_level: int = Field(0, le=MAX_INT32)
    category_id: int | None = None
    image_url: str | None = None
    images: list[str] = Field(default_factory=list)
    weight: Decimal | None = None
    dimensions: str | None = None
    is_active: bool = True
    is_featured: bool = False


class ProductUpdateRequest(RequestModel):
    """Partial update: only the keys present in the body are changed."""
    name: str | None = None
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    price: Decimal | None = None
    cost_price: Decimal | None = None
    min_stock_level: int | None = Field(None, le=MAX_INT32)
    category_id: int | None = None
    image_url: str | None = None
    images: list[str] | None = None
    weight: Decimal | None = None
    dimensions: str | None = None
    is_active: bool | None = None
    is_featured: bool | None = None


class StockUpdateRequest(RequestModel):
    stock_quantity: int = Field(..., le=MAX_INT32)


class CategoryCreateRequest(RequestModel):
    name: str | None = None
    description: str | None = None
    parent_id: int | None = None
    image_url: str | None = None
    sort_order: int = 0


class CategoryUpdateRequest(RequestModel):
    name: str | None = None
    description: str | None = None
    parent_id: int | None = None
    image_url: str | None = None
    sort_order: int | None = None


class CustomerActiveRequest(RequestModel):
    active: bool
