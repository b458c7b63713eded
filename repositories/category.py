from sqlalchemy import select, update, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from db import query_single, query_list, execute_update, execute_insert, exists
from models.category import Category, CategoryDTO


class CategoryRepository:

    @staticmethod
    async def get_by_id(category_id: int, session: AsyncSession) -> CategoryDTO | None:
        stmt = select(Category).where(Category.id == category_id)
        category = await query_single(stmt, session)
        if category is None:
            return None
        return CategoryDTO.model_validate(category, from_attributes=True)

    @staticmethod
    async def get_active_by_id(category_id: int, session: AsyncSession) -> CategoryDTO | None:
        stmt = select(Category).where(Category.id == category_id, Category.is_active == True)
        category = await query_single(stmt, session)
        if category is None:
            return None
        return CategoryDTO.model_validate(category, from_attributes=True)

    @staticmethod
    async def get_all_active(session: AsyncSession) -> list[CategoryDTO]:
        stmt = (select(Category)
                .where(Category.is_active == True)
                .order_by(Category.sort_order, Category.name, Category.id))
        categories = await query_list(stmt, session)
        return [CategoryDTO.model_validate(category, from_attributes=True) for category in categories]

    @staticmethod
    async def get_active_children(parent_id: int, session: AsyncSession) -> list[CategoryDTO]:
        stmt = (select(Category)
                .where(Category.parent_id == parent_id, Category.is_active == True)
                .order_by(Category.sort_order, Category.name, Category.id))
        categories = await query_list(stmt, session)
        return [CategoryDTO.model_validate(category, from_attributes=True) for category in categories]

    @staticmethod
    async def has_active_children(category_id: int, session: AsyncSession) -> bool:
        stmt = select(Category.id).where(Category.parent_id == category_id, Category.is_active == True)
        return await exists(stmt, session)

    @staticmethod
    async def name_exists(name: str, session: AsyncSession, exclude_id: int | None = None) -> bool:
        stmt = select(Category.id).where(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        return await exists(stmt, session)

    @staticmethod
    async def create(category_dto: CategoryDTO, session: AsyncSession) -> int:
        category = Category(**category_dto.model_dump(exclude={'id', 'created_at'}, exclude_none=True))
        return await execute_insert(category, session)

    @staticmethod
    async def update(category_dto: CategoryDTO, session: AsyncSession) -> int:
        stmt = (update(Category)
                .where(Category.id == category_dto.id)
                .values(**category_dto.model_dump(exclude={'id', 'created_at', 'is_active'})))
        return await execute_update(stmt, session)

    @staticmethod
    async def soft_delete(category_id: int, session: AsyncSession) -> int:
        stmt = update(Category).where(Category.id == category_id).values(is_active=False)
        return await execute_update(stmt, session)

    @staticmethod
    async def search(keyword: str, session: AsyncSession) -> list[CategoryDTO]:
        stmt = (select(Category)
                .where(Category.is_active == True,
                       or_(Category.name.contains(keyword, autoescape=True),
                           Category.description.contains(keyword, autoescape=True)))
                .order_by(Category.sort_order, Category.name, Category.id))
        categories = await query_list(stmt, session)
        return [CategoryDTO.model_validate(category, from_attributes=True) for category in categories]
