# A cart is not a table of its own: it is the set of cart_items rows of one
# customer, joined to the current product state every time it is read.
#
# Products are NOT reserved while sitting in a cart, so availability has to be
# checked again by check_stock / validate_cart before checkout.
from decimal import Decimal

from pydantic import BaseModel, Field

from models.cartItem import CartItemDTO
from models.product import ProductDTO


class CartLineDTO(BaseModel):
    item: CartItemDTO
    product: ProductDTO | None = None
    # False for stale lines whose product was deactivated or deleted
    available: bool = True
    subtotal: Decimal = Decimal("0")


class CartSummaryDTO(BaseModel):
    cart_items: list[CartLineDTO] = Field(default_factory=list)
    total_quantity: int = 0
    total_amount: Decimal = Decimal("0")
