import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit
from exceptions import (
    ValidationException,
    ProductNotFoundException,
    DuplicateSkuException,
    CategoryNotFoundException,
)
from models.operation_result import OperationResult
from models.product import ProductDTO
from models.search import ProductSearchCriteria, ProductSearchResult, PageInfoDTO, normalize_paging
from repositories.category import CategoryRepository
from repositories.product import ProductRepository
from utils.error_handler import service_operation

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200
MAX_SKU_LENGTH = 100
MONEY_QUANTUM = Decimal("0.01")
MONEY_LIMIT = Decimal(10) ** 8


def _validate_money(value: Decimal, field: str, label: str):
    """Amounts must fit NUMERIC(10,2) exactly; nothing is rounded on the way in."""
    if not value.is_finite():
        raise ValidationException(f"{label} must be a finite amount", field=field)
    if value < 0:
        raise ValidationException(f"{label} must not be negative", field=field)
    if value >= MONEY_LIMIT:
        raise ValidationException(f"{label} must be less than {MONEY_LIMIT}", field=field)
    if value != value.quantize(MONEY_QUANTUM):
        raise ValidationException(f"{label} must have at most 2 decimal places", field=field)


class ProductService:

    @staticmethod
    async def _validate_product(product: ProductDTO, session: AsyncSession):
        """Raises ValidationException naming the first violated rule."""
        if product.name is None or product.name.strip() == "":
            raise ValidationException("Product name must not be empty", field="name")
        if len(product.name) > MAX_NAME_LENGTH:
            raise ValidationException(f"Product name must not exceed {MAX_NAME_LENGTH} characters", field="name")
        if product.sku is None or product.sku.strip() == "":
            raise ValidationException("SKU must not be empty", field="sku")
        if len(product.sku) > MAX_SKU_LENGTH:
            raise ValidationException(f"SKU must not exceed {MAX_SKU_LENGTH} characters", field="sku")
        if product.price is None:
            raise ValidationException("Price is required", field="price")
        _validate_money(product.price, "price", "Price")
        if product.cost_price is not None:
            _validate_money(product.cost_price, "cost_price", "Cost price")
        if product.stock_quantity < 0:
            raise ValidationException("Stock quantity must not be negative", field="stock_quantity")
        if product.min_stock_level < 0:
            raise ValidationException("Minimum stock level must not be negative", field="min_stock_level")
        if product.category_id is not None:
            category = await CategoryRepository.get_active_by_id(product.category_id, session)
            if category is None:
                raise CategoryNotFoundException(product.category_id)

    @staticmethod
    async def _with_category(product: ProductDTO, session: AsyncSession) -> ProductDTO:
        if product.category_id is not None:
            product.category = await CategoryRepository.get_by_id(product.category_id, session)
        return product

    @staticmethod
    @service_operation("search products")
    async def search_products(criteria: ProductSearchCriteria, session: AsyncSession) -> OperationResult:
        products = await ProductRepository.search(criteria, session)
        total_count = await ProductRepository.count_search(criteria, session)
        result = ProductSearchResult(products=products,
                                     total_count=total_count,
                                     current_page=criteria.page,
                                     page_size=criteria.page_size)
        return OperationResult.ok(result)

    @staticmethod
    @service_operation("create product")
    async def create_product(product: ProductDTO, session: AsyncSession) -> OperationResult:
        await ProductService._validate_product(product, session)
        product.sku = product.sku.strip()
        if await ProductRepository.sku_exists(product.sku, session):
            raise DuplicateSkuException(product.sku)
        product_id = await ProductRepository.create(product, session)
        await session_commit(session)
        logger.info(f"Product {product_id} created (SKU {product.sku})")
        created = await ProductRepository.get_by_id(product_id, session)
        return OperationResult.ok(created, message="Product created")

    @staticmethod
    @service_operation("update product")
    async def update_product(product_id: int, changes: dict, session: AsyncSession) -> OperationResult:
        """
        Apply `changes` (field name -> new value) to an existing product.

        Fields not present in `changes` keep their stored value. Stock is left
        alone; use update_product_stock for that.
        """
        existing = await ProductRepository.get_by_id(product_id, session)
        if existing is None:
            raise ProductNotFoundException(product_id)
        product = existing.model_copy(update=changes)
        await ProductService._validate_product(product, session)
        product.sku = product.sku.strip()
        if await ProductRepository.sku_exists(product.sku, session, exclude_id=product_id):
            raise DuplicateSkuException(product.sku)
        await ProductRepository.update(product_id, product, session)
        await session_commit(session)
        logger.info(f"Product {product_id} updated")
        updated = await ProductRepository.get_by_id(product_id, session)
        return OperationResult.ok(updated, message="Product updated")

    @staticmethod
    @service_operation("delete product")
    async def delete_product(product_id: int, session: AsyncSession) -> OperationResult:
        if await ProductRepository.get_by_id(product_id, session) is None:
            raise ProductNotFoundException(product_id)
        await ProductRepository.soft_delete(product_id, session)
        await session_commit(session)
        logger.info(f"Product {product_id} deactivated")
        return OperationResult.ok(message="Product deleted")

    @staticmethod
    @service_operation("update product stock")
    async def update_product_stock(product_id: int, stock_quantity: int, session: AsyncSession) -> OperationResult:
        if stock_quantity is None or stock_quantity < 0:
            raise ValidationException("Stock quantity must not be negative", field="stock_quantity")
        if await ProductRepository.get_by_id(product_id, session) is None:
            raise ProductNotFoundException(product_id)
        await ProductRepository.update_stock(product_id, stock_quantity, session)
        await session_commit(session)
        logger.info(f"Product {product_id} stock set to {stock_quantity}")
        updated = await ProductRepository.get_by_id(product_id, session)
        return OperationResult.ok(updated, message="Stock updated")

    @staticmethod
    @service_operation("get product")
    async def get_product(product_id: int, session: AsyncSession) -> OperationResult:
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None or not product.is_active:
            raise ProductNotFoundException(product_id)
        return OperationResult.ok(await ProductService._with_category(product, session))

    @staticmethod
    @service_operation("get product by SKU")
    async def get_product_by_sku(sku: str, session: AsyncSession) -> OperationResult:
        if sku is None or sku.strip() == "":
            raise ValidationException("SKU must not be empty", field="sku")
        product = await ProductRepository.get_by_sku(sku.strip(), session)
        if product is None or not product.is_active:
            raise ProductNotFoundException(sku=sku)
        return OperationResult.ok(await ProductService._with_category(product, session))

    @staticmethod
    @service_operation("list products")
    async def list_products(page: int | None, page_size: int | None, session: AsyncSession) -> OperationResult:
        page, page_size = normalize_paging(page, page_size)
        products = await ProductRepository.get_active_paginated((page - 1) * page_size, page_size, session)
        total_count = await ProductRepository.count_active(session)
        return OperationResult.ok({
            "products": products,
            "page_info": PageInfoDTO.build(page, page_size, total_count),
        })

    @staticmethod
    @service_operation("list products by category")
    async def list_products_by_category(category_id: int,
                                        page: int | None,
                                        page_size: int | None,
                                        session: AsyncSession) -> OperationResult:
        category = await CategoryRepository.get_active_by_id(category_id, session)
        if category is None:
            raise CategoryNotFoundException(category_id)
        page, page_size = normalize_paging(page, page_size)
        products = await ProductRepository.get_active_by_category(category_id, (page - 1) * page_size,
                                                                  page_size, session)
        for product in products:
            product.category = category
        total_count = await ProductRepository.count_active_by_category(category_id, session)
        return OperationResult.ok({
            "products": products,
            "page_info": PageInfoDTO.build(page, page_size, total_count),
            "category_id": category_id,
        })

    @staticmethod
    @service_operation("get featured products")
    async def get_featured_products(limit: int | None, session: AsyncSession) -> OperationResult:
        if limit is None or not 1 <= limit <= config.FEATURED_MAX_LIMIT:
            limit = config.FEATURED_DEFAULT_LIMIT
        return OperationResult.ok(await ProductRepository.get_featured(limit, session))

    @staticmethod
    @service_operation("get low stock products")
    async def get_low_stock_products(session: AsyncSession) -> OperationResult:
        return OperationResult.ok(await ProductRepository.get_low_stock(session))

