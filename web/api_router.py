"""
HTTP API of the shop.

Public catalog and account endpoints, customer-only cart and profile endpoints
(session cookie required) and admin endpoints (ADMIN session required).
Handlers only translate HTTP to service calls; every rule lives in services/.
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import CategoryDTO
from models.customer import CustomerDTO
from models.product import ProductDTO
from models.search import ProductSearchCriteria, PageInfoDTO
from services.cart import CartService
from services.category import CategoryService
from services.customer import CustomerService
from services.product import ProductService
from web.dependencies import (
    SessionUser,
    get_session,
    require_customer,
    require_admin,
    store_session_user,
)
from web.responses import result_response, success_response
from web.schemas import (
    AddToCartRequest,
    UpdateCartQuantityRequest,
    RegisterRequest,
    LoginRequest,
    ChangePasswordRequest,
    UpdateProfileRequest,
    ProductCreateRequest,
    ProductUpdateRequest,
    StockUpdateRequest,
    CategoryCreateRequest,
    CategoryUpdateRequest,
    CustomerActiveRequest,
)

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api", tags=["api"])
product_router = APIRouter(prefix="/products", tags=["products"])
customer_router = APIRouter(prefix="/customers", tags=["customers"])
cart_router = APIRouter(prefix="/cart", tags=["cart"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])

# Fields that may be explicitly cleared to null by a partial update
NULLABLE_PRODUCT_FIELDS = {'description', 'short_description', 'cost_price', 'category_id',
                           'image_url', 'weight', 'dimensions'}
NULLABLE_CATEGORY_FIELDS = {'description', 'parent_id', 'image_url'}
NULLABLE_CUSTOMER_FIELDS = {'phone'}


def partial_changes(payload, nullable: set[str]) -> dict:
    """Keys the client actually sent; null is kept only where the column allows it."""
    return {key: value for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or key in nullable}


# ============================================================================
# Products (public)
# ============================================================================

@product_router.get("")
async def list_products(page: int | None = Query(None),
                        page_size: int | None = Query(None, alias="pageSize"),
                        session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.list_products(page, page_size, session))


@product_router.get("/featured")
async def featured_products(limit: int | None = Query(None),
                            session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.get_featured_products(limit, session))


@product_router.get("/search")
async def search_products(keyword: str | None = Query(None),
                          category_id: int | None = Query(None, alias="categoryId"),
                          min_price: Decimal | None = Query(None, alias="minPrice"),
                          max_price: Decimal | None = Query(None, alias="maxPrice"),
                          in_stock: bool = Query(False, alias="inStock"),
                          sort_by: str | None = Query(None, alias="sortBy"),
                          sort_order: str | None = Query(None, alias="sortOrder"),
                          page: int | None = Query(None),
                          page_size: int | None = Query(None, alias="pageSize"),
                          session: AsyncSession = Depends(get_session)):
    criteria = ProductSearchCriteria(keyword=keyword,
                                     category_id=category_id,
                                     min_price=min_price,
                                     max_price=max_price,
                                     in_stock=in_stock,
                                     sort_by=sort_by,
                                     sort_order=sort_order,
                                     page=page,
                                     page_size=page_size)
    result = await ProductService.search_products(criteria, session)
    if not result.success:
        return result_response(result)
    search_result = result.data
    return result_response(result, {
        "products": search_result.products,
        "page_info": PageInfoDTO.build(search_result.current_page,
                                       search_result.page_size,
                                       search_result.total_count),
    })


@product_router.get("/categories")
async def product_categories(tree: bool = Query(False),
                             session: AsyncSession = Depends(get_session)):
    if tree:
        return result_response(await CategoryService.get_category_tree(session))
    return result_response(await CategoryService.list_categories(session))


@product_router.get("/category/{category_id}")
async def products_by_category(category_id: int,
                               page: int | None = Query(None),
                               page_size: int | None = Query(None, alias="pageSize"),
                               session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.list_products_by_category(category_id, page, page_size, session))


@product_router.get("/{product_id}")
async def product_detail(product_id: int, session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.get_product(product_id, session))


# ============================================================================
# Customers
# ============================================================================

@customer_router.post("/register")
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_session)):
    customer = CustomerDTO(username=payload.username,
                           email=payload.email,
                           first_name=payload.first_name,
                           last_name=payload.last_name,
                           phone=payload.phone)
    return result_response(await CustomerService.register(customer, payload.password, session))


@customer_router.post("/login")
async def login(request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_session)):
    result = await CustomerService.login(payload.username, payload.password, session)
    if result.success:
        authenticated = result.data
        store_session_user(request, SessionUser(customer_id=authenticated.customer.id,
                                                username=authenticated.customer.username,
                                                user_type=authenticated.user_type))
    return result_response(result)


@customer_router.post("/logout")
async def logout(request: Request, user: SessionUser = Depends(require_customer)):
    request.session.clear()
    logger.info(f"Customer {user.customer_id} logged out")
    return success_response(message="Logged out")


@customer_router.get("/profile")
async def get_profile(user: SessionUser = Depends(require_customer),
                      session: AsyncSession = Depends(get_session)):
    return result_response(await CustomerService.get_customer(user.customer_id, session))


@customer_router.put("/profile")
async def update_profile(request: Request,
                         payload: UpdateProfileRequest,
                         user: SessionUser = Depends(require_customer),
                         session: AsyncSession = Depends(get_session)):
    result = await CustomerService.update_profile(user.customer_id,
                                                  partial_changes(payload, NULLABLE_CUSTOMER_FIELDS),
                                                  session)
    if result.success and result.data.username != user.username:
        store_session_user(request, user.model_copy(update={'username': result.data.username}))
    return result_response(result)


@customer_router.put("/password")
async def change_password(payload: ChangePasswordRequest,
                          user: SessionUser = Depends(require_customer),
                          session: AsyncSession = Depends(get_session)):
    return result_response(await CustomerService.change_password(user.customer_id,
                                                                 payload.current_password,
                                                                 payload.new_password,
                                                                 session))


# ============================================================================
# Cart (logged-in customers)
# ============================================================================

@cart_router.get("")
async def get_cart(user: SessionUser = Depends(require_customer),
                   session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.get_cart(user.customer_id, session))


@cart_router.get("/count")
async def cart_count(user: SessionUser = Depends(require_customer),
                     session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.get_cart_item_count(user.customer_id, session))


@cart_router.get("/validate")
async def validate_cart(user: SessionUser = Depends(require_customer),
                        session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.validate_cart(user.customer_id, session))


@cart_router.get("/stock-check")
async def check_cart_stock(user: SessionUser = Depends(require_customer),
                           session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.check_stock(user.customer_id, session))


@cart_router.post("")
async def add_to_cart(payload: AddToCartRequest,
                      user: SessionUser = Depends(require_customer),
                      session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.add_to_cart(user.customer_id, payload.product_id,
                                                         payload.quantity, session))


@cart_router.post("/clear")
async def clear_cart(user: SessionUser = Depends(require_customer),
                     session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.clear_cart(user.customer_id, session))


@cart_router.put("/{product_id}")
async def update_cart_quantity(product_id: int,
                               payload: UpdateCartQuantityRequest,
                               user: SessionUser = Depends(require_customer),
                               session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.update_quantity(user.customer_id, product_id,
                                                             payload.quantity, session))


@cart_router.delete("/{product_id}")
async def remove_from_cart(product_id: int,
                           user: SessionUser = Depends(require_customer),
                           session: AsyncSession = Depends(get_session)):
    return result_response(await CartService.remove_from_cart(user.customer_id, product_id, session))


# ============================================================================
# Admin
# ============================================================================

@admin_router.post("/products")
async def create_product(payload: ProductCreateRequest,
                         admin: SessionUser = Depends(require_admin),
                         session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.create_product(ProductDTO(**payload.model_dump()), session))


@admin_router.get("/products/low-stock")
async def low_stock_products(admin: SessionUser = Depends(require_admin),
                             session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.get_low_stock_products(session))


@admin_router.put("/products/{product_id}")
async def update_product(product_id: int,
                         payload: ProductUpdateRequest,
                         admin: SessionUser = Depends(require_admin),
                         session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.update_product(product_id,
                                                               partial_changes(payload, NULLABLE_PRODUCT_FIELDS),
                                                               session))


@admin_router.put("/products/{product_id}/stock")
async def update_product_stock(product_id: int,
                               payload: StockUpdateRequest,
                               admin: SessionUser = Depends(require_admin),
                               session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.update_product_stock(product_id, payload.stock_quantity, session))


@admin_router.delete("/products/{product_id}")
async def delete_product(product_id: int,
                         admin: SessionUser = Depends(require_admin),
                         session: AsyncSession = Depends(get_session)):
    return result_response(await ProductService.delete_product(product_id, session))


@admin_router.post("/categories")
async def create_category(payload: CategoryCreateRequest,
                          admin: SessionUser = Depends(require_admin),
                          session: AsyncSession = Depends(get_session)):
    return result_response(await CategoryService.create_category(CategoryDTO(**payload.model_dump()), session))


@admin_router.put("/categories/{category_id}")
async def update_category(category_id: int,
                          payload: CategoryUpdateRequest,
                          admin: SessionUser = Depends(require_admin),
                          session: AsyncSession = Depends(get_session)):
    return result_response(await CategoryService.update_category(category_id,
                                                                 partial_changes(payload, NULLABLE_CATEGORY_FIELDS),
                                                                 session))


@admin_router.delete("/categories/{category_id}")
async def delete_category(category_id: int,
                          admin: SessionUser = Depends(require_admin),
                          session: AsyncSession = Depends(get_session)):
    return result_response(await CategoryService.delete_category(category_id, session))


@admin_router.get("/customers")
async def list_customers(keyword: str | None = Query(None),
                         page: int | None = Query(None),
                         page_size: int | None = Query(None, alias="pageSize"),
                         admin: SessionUser = Depends(require_admin),
                         session: AsyncSession = Depends(get_session)):
    return result_response(await CustomerService.search_customers(keyword, page, page_size, session))


@admin_router.put("/customers/{customer_id}/active")
async def set_customer_active(customer_id: int,
                              payload: CustomerActiveRequest,
                              admin: SessionUser = Depends(require_admin),
                              session: AsyncSession = Depends(get_session)):
    return result_response(await CustomerService.set_customer_active(customer_id, payload.active, session))


api_router.include_router(product_router)
api_router.include_router(customer_router)
api_router.include_router(cart_router)
api_router.include_router(admin_router)
