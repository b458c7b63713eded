from sqlalchemy import select, update, or_, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession

from db import query_single, query_list, execute_update, execute_insert, exists, count
from enums.sort_field import SortField, SortOrder
from models.product import Product, ProductDTO, PRODUCT_WRITABLE_FIELDS
from models.search import ProductSearchCriteria

# Allow-list of sortable columns; user input never reaches ORDER BY directly
SORT_COLUMNS = {
    SortField.PRICE: Product.price,
    SortField.CREATED_AT: Product.created_at,
    SortField.NAME: Product.name,
}


def build_search_predicates(criteria: ProductSearchCriteria) -> list:
    """
    Compose the WHERE fragments for a product search.

    One fragment per supplied optional parameter, plus the mandatory active
    filter. The same list feeds both the page query and the count query.
    """
    predicates = [Product.is_active == True]
    if criteria.keyword:
        predicates.append(or_(
            Product.name.contains(criteria.keyword, autoescape=True),
            Product.description.contains(criteria.keyword, autoescape=True),
            Product.short_description.contains(criteria.keyword, autoescape=True),
        ))
    if criteria.category_id is not None:
        predicates.append(Product.category_id == criteria.category_id)
    if criteria.min_price is not None:
        predicates.append(Product.price >= criteria.min_price)
    if criteria.max_price is not None:
        predicates.append(Product.price <= criteria.max_price)
    if criteria.in_stock:
        predicates.append(Product.stock_quantity > 0)
    return predicates


def build_order_by(criteria: ProductSearchCriteria) -> list:
    column = SORT_COLUMNS.get(criteria.sort_by, Product.created_at)
    direction = asc if criteria.sort_order == SortOrder.ASC else desc
    # id keeps paging stable when sort values tie
    return [direction(column), direction(Product.id)]


class ProductRepository:

    @staticmethod
    async def search(criteria: ProductSearchCriteria, session: AsyncSession) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(*build_search_predicates(criteria))
                .order_by(*build_order_by(criteria))
                .limit(criteria.page_size)
                .offset(criteria.offset))
        products = await query_list(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products]

    @staticmethod
    async def count_search(criteria: ProductSearchCriteria, session: AsyncSession) -> int:
        stmt = select(Product.id).where(*build_search_predicates(criteria))
        return await count(stmt, session)

    @staticmethod
    async def get_by_id(product_id: int, session: AsyncSession) -> ProductDTO | None:
        """Returns the product whether or not it is active."""
        stmt = select(Product).where(Product.id == product_id)
        product = await query_single(stmt, session)
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def get_by_ids(product_ids: list[int], session: AsyncSession) -> dict[int, ProductDTO]:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(product_ids))
        products = await query_list(stmt, session)
        return {product.id: ProductDTO.model_validate(product, from_attributes=True) for product in products}

    @staticmethod
    async def get_by_sku(sku: str, session: AsyncSession) -> ProductDTO | None:
        stmt = select(Product).where(Product.sku == sku)
        product = await query_single(stmt, session)
        if product is None:
            return None
        return ProductDTO.model_validate(product, from_attributes=True)

    @staticmethod
    async def sku_exists(sku: str, session: AsyncSession, exclude_id: int | None = None) -> bool:
        stmt = select(Product.id).where(Product.sku == sku)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        return await exists(stmt, session)

    @staticmethod
    async def create(product_dto: ProductDTO, session: AsyncSession) -> int:
        values = product_dto.model_dump(include=PRODUCT_WRITABLE_FIELDS, exclude_none=True)
        return await execute_insert(Product(**values), session)

    @staticmethod
    async def update(product_id: int, product_dto: ProductDTO, session: AsyncSession) -> int:
        values = product_dto.model_dump(include=PRODUCT_WRITABLE_FIELDS)
        # Stock has its own operation; a full update never touches it
        values.pop('stock_quantity', None)
        if values.get('images') is None:
            values['images'] = []
        stmt = update(Product).where(Product.id == product_id).values(**values)
        return await execute_update(stmt, session)

    @staticmethod
    async def update_stock(product_id: int, stock_quantity: int, session: AsyncSession) -> int:
        stmt = update(Product).where(Product.id == product_id).values(stock_quantity=stock_quantity)
        return await execute_update(stmt, session)

    @staticmethod
    async def soft_delete(product_id: int, session: AsyncSession) -> int:
        stmt = update(Product).where(Product.id == product_id).values(is_active=False)
        return await execute_update(stmt, session)

    @staticmethod
    async def get_active_paginated(offset: int, limit: int, session: AsyncSession) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(Product.is_active == True)
                .order_by(Product.created_at.desc(), Product.id.desc())
                .limit(limit)
                .offset(offset))
        products = await query_list(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products]

    @staticmethod
    async def count_active(session: AsyncSession) -> int:
        stmt = select(Product.id).where(Product.is_active == True)
        return await count(stmt, session)

    @staticmethod
    async def get_active_by_category(category_id: int,
                                     offset: int,
                                     limit: int,
                                     session: AsyncSession) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(Product.category_id == category_id, Product.is_active == True)
                .order_by(Product.name, Product.id)
                .limit(limit)
                .offset(offset))
        products = await query_list(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products]

    @staticmethod
    async def count_active_by_category(category_id: int, session: AsyncSession) -> int:
        stmt = select(Product.id).where(Product.category_id == category_id, Product.is_active == True)
        return await count(stmt, session)

    @staticmethod
    async def has_active_in_category(category_id: int, session: AsyncSession) -> bool:
        stmt = select(Product.id).where(Product.category_id == category_id, Product.is_active == True)
        return await exists(stmt, session)

    @staticmethod
    async def get_featured(limit: int, session: AsyncSession) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(Product.is_active == True, Product.is_featured == True)
                .order_by(Product.created_at.desc(), Product.id.desc())
                .limit(limit))
        products = await query_list(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products]

    @staticmethod
    async def get_low_stock(session: AsyncSession) -> list[ProductDTO]:
        stmt = (select(Product)
                .where(Product.is_active == True,
                       Product.stock_quantity <= Product.min_stock_level)
                .order_by(Product.stock_quantity.asc(), Product.id))
        products = await query_list(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products]
