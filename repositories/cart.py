from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, query_single, query_list, execute_update, dialect_insert
from models.cartItem import CartItem, CartItemDTO


class CartRepository:

    @staticmethod
    async def get_item(customer_id: int, product_id: int, session: AsyncSession) -> CartItemDTO | None:
        stmt = select(CartItem).where(CartItem.customer_id == customer_id,
                                      CartItem.product_id == product_id)
        cart_item = await query_single(stmt, session)
        if cart_item is None:
            return None
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def get_items(customer_id: int, session: AsyncSession) -> list[CartItemDTO]:
        stmt = (select(CartItem)
                .where(CartItem.customer_id == customer_id)
                .order_by(CartItem.created_at, CartItem.id))
        cart_items = await query_list(stmt, session)
        return [CartItemDTO.model_validate(cart_item, from_attributes=True) for cart_item in cart_items]

    @staticmethod
    async def upsert_quantity(customer_id: int,
                              product_id: int,
                              quantity: int,
                              max_quantity: int,
                              session: AsyncSession) -> int | None:
        """
        Insert a cart line or add `quantity` to the existing one in a single statement.

        The unique (customer_id, product_id) constraint turns a concurrent duplicate
        insert into a merge. The merge only applies while the merged quantity stays
        within `max_quantity`.

        Returns:
            The stored quantity, or None when the merge was refused and the row left untouched.
        """
        table = CartItem.__table__
        stmt = dialect_insert(table, session).values(customer_id=customer_id,
                                                     product_id=product_id,
                                                     quantity=quantity)
        merged_quantity = table.c.quantity + stmt.excluded.quantity
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.customer_id, table.c.product_id],
            set_={'quantity': merged_quantity, 'updated_at': func.now()},
            where=merged_quantity <= max_quantity,
        ).returning(table.c.quantity)
        result = await session_execute(stmt, session)
        return result.scalar_one_or_none()

    @staticmethod
    async def set_quantity(customer_id: int, product_id: int, quantity: int, session: AsyncSession) -> int:
        stmt = (update(CartItem)
                .where(CartItem.customer_id == customer_id, CartItem.product_id == product_id)
                .values(quantity=quantity))
        return await execute_update(stmt, session)

    @staticmethod
    async def delete_item(customer_id: int, product_id: int, session: AsyncSession) -> int:
        stmt = delete(CartItem).where(CartItem.customer_id == customer_id,
                                      CartItem.product_id == product_id)
        return await execute_update(stmt, session)

    @staticmethod
    async def delete_all(customer_id: int, session: AsyncSession) -> int:
        stmt = delete(CartItem).where(CartItem.customer_id == customer_id)
        return await execute_update(stmt, session)

    @staticmethod
    async def sum_quantity(customer_id: int, session: AsyncSession) -> int:
        stmt = select(func.coalesce(func.sum(CartItem.quantity), 0)).where(CartItem.customer_id == customer_id)
        result = await session_execute(stmt, session)
        return int(result.scalar_one())
