import asyncio
import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit
from enums.user_type import UserType
from exceptions import (
    ValidationException,
    ConflictException,
    CustomerNotFoundException,
    UnauthorizedException,
    AccountDisabledException,
)
from models.customer import CustomerDTO, AuthenticatedCustomerDTO
from models.operation_result import OperationResult
from models.search import PageInfoDTO, normalize_paging
from repositories.customer import CustomerRepository
from utils.error_handler import service_operation
from utils.password import hash_password, verify_password, dummy_verify, is_valid_password

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,50}$")
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@([A-Za-z0-9.-]+\.[A-Za-z]{2,})$")
MAX_EMAIL_LENGTH = 255
MAX_PERSON_NAME_LENGTH = 100
MAX_PHONE_LENGTH = 30


def _validate_profile(customer: CustomerDTO):
    if customer.username is None or not USERNAME_PATTERN.match(customer.username):
        raise ValidationException("Username must be 3-50 characters of letters, digits or underscores",
                                  field="username")
    if (customer.email is None or len(customer.email) > MAX_EMAIL_LENGTH
            or not EMAIL_PATTERN.match(customer.email)):
        raise ValidationException("Invalid email format", field="email")
    for field, label in (("first_name", "First name"), ("last_name", "Last name")):
        value = getattr(customer, field)
        if value is None or value.strip() == "":
            raise ValidationException(f"{label} must not be empty", field=field)
        if len(value) > MAX_PERSON_NAME_LENGTH:
            raise ValidationException(f"{label} must not exceed {MAX_PERSON_NAME_LENGTH} characters", field=field)
    if customer.phone is not None and len(customer.phone) > MAX_PHONE_LENGTH:
        raise ValidationException(f"Phone must not exceed {MAX_PHONE_LENGTH} characters", field="phone")


def _validate_password(password: str | None, field: str = "password"):
    if not is_valid_password(password):
        raise ValidationException("Password must be at least 6 characters and contain a letter or digit",
                                  field=field)


def resolve_user_type(username: str) -> UserType:
    return UserType.ADMIN if username in config.ADMIN_USERNAME_LIST else UserType.CUSTOMER


class CustomerService:

    @staticmethod
    async def _ensure_unique(customer: CustomerDTO, session: AsyncSession, exclude_id: int | None = None):
        if await CustomerRepository.username_exists(customer.username, session, exclude_id=exclude_id):
            raise ConflictException("Username already exists", details={'field': 'username'})
        if await CustomerRepository.email_exists(customer.email, session, exclude_id=exclude_id):
            raise ConflictException("Email already registered", details={'field': 'email'})

    @staticmethod
    @service_operation("register customer")
    async def register(customer: CustomerDTO, password: str, session: AsyncSession) -> OperationResult:
        if customer.email is not None:
            customer.email = customer.email.strip().lower()
        _validate_profile(customer)
        _validate_password(password)
        await CustomerService._ensure_unique(customer, session)

        password_hash = await asyncio.to_thread(hash_password, password)
        customer_id = await CustomerRepository.create(customer, password_hash, session)
        await session_commit(session)
        logger.info(f"Customer {customer_id} registered")
        return OperationResult.ok(await CustomerRepository.get_by_id(customer_id, session),
                                  message="Registration successful")

    @staticmethod
    @service_operation("login")
    async def login(identifier: str, password: str, session: AsyncSession) -> OperationResult:
        """
        Authenticate by username, falling back to email.

        Every credential mismatch produces the same Unauthorized message, and a
        dummy hash verification runs when no account matches so the unknown-user
        path takes as long as a wrong password.
        """
        if identifier is None or identifier.strip() == "" or not password:
            raise ValidationException("Username and password are required")
        identifier = identifier.strip()

        credentials = await CustomerRepository.get_credentials_by_username(identifier, session)
        if credentials is None:
            credentials = await CustomerRepository.get_credentials_by_email(identifier, session)
        if credentials is None:
            await asyncio.to_thread(dummy_verify)
            raise UnauthorizedException()
        if not await asyncio.to_thread(verify_password, password, credentials.password_hash):
            raise UnauthorizedException()
        if not credentials.is_active:
            raise AccountDisabledException(credentials.id)

        customer = CustomerDTO.model_validate(credentials.model_dump(exclude={'password_hash'}))
        logger.info(f"Customer {customer.id} logged in")
        return OperationResult.ok(AuthenticatedCustomerDTO(customer=customer,
                                                           user_type=resolve_user_type(customer.username)),
                                  message="Login successful")

    @staticmethod
    @service_operation("change password")
    async def change_password(customer_id: int,
                              current_password: str,
                              new_password: str,
                              session: AsyncSession) -> OperationResult:
        credentials = await CustomerRepository.get_credentials_by_id(customer_id, session)
        if credentials is None:
            raise CustomerNotFoundException(customer_id)
        if not await asyncio.to_thread(verify_password, current_password, credentials.password_hash):
            raise UnauthorizedException("Current password is incorrect")
        _validate_password(new_password, field="new_password")
        password_hash = await asyncio.to_thread(hash_password, new_password)
        await CustomerRepository.update_password_hash(customer_id, password_hash, session)
        await session_commit(session)
        logger.info(f"Customer {customer_id} changed password")
        return OperationResult.ok(message="Password changed")

    @staticmethod
    @service_operation("get customer")
    async def get_customer(customer_id: int, session: AsyncSession) -> OperationResult:
        customer = await CustomerRepository.get_by_id(customer_id, session)
        if customer is None:
            raise CustomerNotFoundException(customer_id)
        return OperationResult.ok(customer)

    @staticmethod
    @service_operation("update profile")
    async def update_profile(customer_id: int, changes: dict, session: AsyncSession) -> OperationResult:
        existing = await CustomerRepository.get_by_id(customer_id, session)
        if existing is None:
            raise CustomerNotFoundException(customer_id)
        customer = existing.model_copy(update={**changes, 'id': customer_id})
        if customer.email is not None:
            customer.email = customer.email.strip().lower()
        _validate_profile(customer)
        await CustomerService._ensure_unique(customer, session, exclude_id=customer_id)
        await CustomerRepository.update_profile(customer, session)
        await session_commit(session)
        logger.info(f"Customer {customer_id} updated profile")
        return OperationResult.ok(await CustomerRepository.get_by_id(customer_id, session),
                                  message="Profile updated")

    @staticmethod
    @service_operation("list customers")
    async def list_customers(page: int | None, page_size: int | None, session: AsyncSession) -> OperationResult:
        page, page_size = normalize_paging(page, page_size)
        customers = await CustomerRepository.get_paginated((page - 1) * page_size, page_size, session)
        total_count = await CustomerRepository.count_all(session)
        return OperationResult.ok({
            "customers": customers,
            "page_info": PageInfoDTO.build(page, page_size, total_count),
        })

    @staticmethod
    @service_operation("search customers")
    async def search_customers(keyword: str | None,
                               page: int | None,
                               page_size: int | None,
                               session: AsyncSession) -> OperationResult:
        if keyword is None or keyword.strip() == "":
            return await CustomerService.list_customers(page, page_size, session)
        keyword = keyword.strip()
        page, page_size = normalize_paging(page, page_size)
        customers = await CustomerRepository.search(keyword, (page - 1) * page_size, page_size, session)
        total_count = await CustomerRepository.count_search(keyword, session)
        return OperationResult.ok({
            "customers": customers,
            "page_info": PageInfoDTO.build(page, page_size, total_count),
        })

    @staticmethod
    @service_operation("set customer active")
    async def set_customer_active(customer_id: int, active: bool, session: AsyncSession) -> OperationResult:
        if await CustomerRepository.get_by_id(customer_id, session) is None:
            raise CustomerNotFoundException(customer_id)
        await CustomerRepository.set_active(customer_id, active, session)
        await session_commit(session)
        logger.info(f"Customer {customer_id} {'activated' if active else 'deactivated'}")
        return OperationResult.ok(await CustomerRepository.get_by_id(customer_id, session),
                                  message="Customer activated" if active else "Customer deactivated")
