from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush, session_savepoint
from models.cartItem import CartItem, CartItemDTO


class CartRepository:

    @staticmethod
    async def get_item(user_id: int, product_id: int, session: AsyncSession | Session) -> CartItemDTO | None:
        stmt = (select(CartItem)
                .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        cart_item = result.scalar_one_or_none()
        if cart_item is not None:
            return CartItemDTO.model_validate(cart_item, from_attributes=True)
        return None

    @staticmethod
    async def get_items(user_id: int, session: AsyncSession | Session) -> list[CartItemDTO]:
        stmt = (select(CartItem)
                .where(CartItem.user_id == user_id)
                .order_by(CartItem.added_at, CartItem.id)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        return [CartItemDTO.model_validate(cart_item, from_attributes=True) for cart_item in result.scalars().all()]

    @staticmethod
    async def create(cart_item_dto: CartItemDTO, session: AsyncSession | Session) -> CartItemDTO:
        cart_item = CartItem(**cart_item_dto.model_dump(exclude_none=True))
        async with session_savepoint(session):
            session.add(cart_item)
            await session_flush(session)
        return CartItemDTO.model_validate(cart_item, from_attributes=True)

    @staticmethod
    async def increase_quantity(user_id: int, product_id: int, quantity: int, session: AsyncSession | Session) -> bool:
        stmt = (update(CartItem)
                .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
                .values(quantity=CartItem.quantity + quantity)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def set_quantity(user_id: int, product_id: int, quantity: int, session: AsyncSession | Session) -> bool:
        stmt = (update(CartItem)
                .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
                .values(quantity=quantity)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def remove_item(user_id: int, product_id: int, session: AsyncSession | Session) -> bool:
        stmt = (delete(CartItem)
                .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def remove_products(user_id: int, product_ids: list[int], session: AsyncSession | Session) -> int:
        if not product_ids:
            return 0
        stmt = (delete(CartItem)
                .where(CartItem.user_id == user_id, CartItem.product_id.in_(product_ids))
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount

    @staticmethod
    async def clear(user_id: int, session: AsyncSession | Session) -> int:
        stmt = delete(CartItem).where(CartItem.user_id == user_id).execution_options(synchronize_session=False)
        result = await session_execute(stmt, session)
        return result.rowcount
