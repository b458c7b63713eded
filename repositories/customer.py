from sqlalchemy import select, update, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from db import query_single, query_list, execute_update, execute_insert, exists, count
from models.customer import Customer, CustomerDTO, CustomerCredentialsDTO


class CustomerRepository:

    @staticmethod
    async def get_by_id(customer_id: int, session: AsyncSession) -> CustomerDTO | None:
        stmt = select(Customer).where(Customer.id == customer_id)
        customer = await query_single(stmt, session)
        if customer is None:
            return None
        return CustomerDTO.model_validate(customer, from_attributes=True)

    @staticmethod
    async def get_credentials_by_id(customer_id: int, session: AsyncSession) -> CustomerCredentialsDTO | None:
        stmt = select(Customer).where(Customer.id == customer_id)
        customer = await query_single(stmt, session)
        if customer is None:
            return None
        return CustomerCredentialsDTO.model_validate(customer, from_attributes=True)

    @staticmethod
    async def get_credentials_by_username(username: str, session: AsyncSession) -> CustomerCredentialsDTO | None:
        stmt = select(Customer).where(Customer.username == username)
        customer = await query_single(stmt, session)
        if customer is None:
            return None
        return CustomerCredentialsDTO.model_validate(customer, from_attributes=True)

    @staticmethod
    async def get_credentials_by_email(email: str, session: AsyncSession) -> CustomerCredentialsDTO | None:
        stmt = select(Customer).where(Customer.email == email.lower())
        customer = await query_single(stmt, session)
        if customer is None:
            return None
        return CustomerCredentialsDTO.model_validate(customer, from_attributes=True)

    @staticmethod
    async def username_exists(username: str, session: AsyncSession, exclude_id: int | None = None) -> bool:
        stmt = select(Customer.id).where(Customer.username == username)
        if exclude_id is not None:
            stmt = stmt.where(Customer.id != exclude_id)
        return await exists(stmt, session)

    @staticmethod
    async def email_exists(email: str, session: AsyncSession, exclude_id: int | None = None) -> bool:
        stmt = select(Customer.id).where(func.lower(Customer.email) == email.lower())
        if exclude_id is not None:
            stmt = stmt.where(Customer.id != exclude_id)
        return await exists(stmt, session)

    @staticmethod
    async def create(customer_dto: CustomerDTO, password_hash: str, session: AsyncSession) -> int:
        customer = Customer(username=customer_dto.username,
                            email=customer_dto.email.lower(),
                            password_hash=password_hash,
                            first_name=customer_dto.first_name,
                            last_name=customer_dto.last_name,
                            phone=customer_dto.phone)
        return await execute_insert(customer, session)

    @staticmethod
    async def update_profile(customer_dto: CustomerDTO, session: AsyncSession) -> int:
        stmt = (update(Customer)
                .where(Customer.id == customer_dto.id)
                .values(username=customer_dto.username,
                        email=customer_dto.email.lower(),
                        first_name=customer_dto.first_name,
                        last_name=customer_dto.last_name,
                        phone=customer_dto.phone))
        return await execute_update(stmt, session)

    @staticmethod
    async def update_password_hash(customer_id: int, password_hash: str, session: AsyncSession) -> int:
        stmt = update(Customer).where(Customer.id == customer_id).values(password_hash=password_hash)
        return await execute_update(stmt, session)

    @staticmethod
    async def set_active(customer_id: int, is_active: bool, session: AsyncSession) -> int:
        stmt = update(Customer).where(Customer.id == customer_id).values(is_active=is_active)
        return await execute_update(stmt, session)

    @staticmethod
    async def get_paginated(offset: int, limit: int, session: AsyncSession) -> list[CustomerDTO]:
        stmt = select(Customer).order_by(Customer.created_at.desc(), Customer.id.desc()).limit(limit).offset(offset)
        customers = await query_list(stmt, session)
        return [CustomerDTO.model_validate(customer, from_attributes=True) for customer in customers]

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        return await count(select(Customer.id), session)

    @staticmethod
    def _search_predicate(keyword: str):
        return or_(Customer.username.contains(keyword, autoescape=True),
                   Customer.email.contains(keyword.lower(), autoescape=True),
                   Customer.first_name.contains(keyword, autoescape=True),
                   Customer.last_name.contains(keyword, autoescape=True))

    @staticmethod
    async def search(keyword: str, offset: int, limit: int, session: AsyncSession) -> list[CustomerDTO]:
        stmt = (select(Customer)
                .where(CustomerRepository._search_predicate(keyword))
                .order_by(Customer.created_at.desc(), Customer.id.desc())
                .limit(limit)
                .offset(offset))
        customers = await query_list(stmt, session)
        return [CustomerDTO.model_validate(customer, from_attributes=True) for customer in customers]

    @staticmethod
    async def count_search(keyword: str, session: AsyncSession) -> int:
        stmt = select(Customer.id).where(CustomerRepository._search_predicate(keyword))
        return await count(stmt, session)
