from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func

from enums.user_type import UserType
from models.base import Base


class Customer(Base):
    __tablename__ = 'customers'

    id = Column(Integer, primary_key=True)
    username = Column(String(50), nullable=False, unique=True)
    # Always stored lower-cased so uniqueness is case-insensitive
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class CustomerDTO(BaseModel):
    """Public view of a customer. Deliberately has no password_hash field."""
    id: int | None = None
    username: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    is_active: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CustomerCredentialsDTO(CustomerDTO):
    """Only returned by CustomerRepository credential lookups for password verification."""
    password_hash: str | None = None


class AuthenticatedCustomerDTO(BaseModel):
    customer: CustomerDTO
    user_type: UserType
