# Orders are persisted data shapes only; no workflow in this service creates them yet.
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint, func
from sqlalchemy import Enum as SQLEnum

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from models.base import Base


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    order_number = Column(String(50), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING)

    # Amounts
    subtotal = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    tax_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    shipping_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    discount_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency = Column(String(3), nullable=False, default="CNY")

    # Shipping address snapshot
    shipping_first_name = Column(String(100), nullable=True)
    shipping_last_name = Column(String(100), nullable=True)
    shipping_company = Column(String(200), nullable=True)
    shipping_address_line1 = Column(String(255), nullable=True)
    shipping_address_line2 = Column(String(255), nullable=True)
    shipping_city = Column(String(100), nullable=True)
    shipping_state = Column(String(100), nullable=True)
    shipping_postal_code = Column(String(20), nullable=True)
    shipping_country = Column(String(100), nullable=True)
    shipping_phone = Column(String(30), nullable=True)
    shipping_method = Column(String(50), nullable=True)
    tracking_number = Column(String(100), nullable=True)

    # Payment
    payment_method = Column(String(50), nullable=True)
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    paid_at = Column(DateTime, nullable=True)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
    shipped_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_order_total_non_negative'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    order_number: str | None = None
    customer_id: int | None = None
    status: OrderStatus | None = None
    subtotal: Decimal | None = None
    tax_amount: Decimal | None = None
    shipping_fee: Decimal | None = None
    discount_amount: Decimal | None = None
    total_amount: Decimal | None = None
    currency: str | None = None
    shipping_first_name: str | None = None
    shipping_last_name: str | None = None
    shipping_company: str | None = None
    shipping_address_line1: str | None = None
    shipping_address_line2: str | None = None
    shipping_city: str | None = None
    shipping_state: str | None = None
    shipping_postal_code: str | None = None
    shipping_country: str | None = None
    shipping_phone: str | None = None
    shipping_method: str | None = None
    tracking_number: str | None = None
    payment_method: str | None = None
    payment_status: PaymentStatus | None = None
    paid_at: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
