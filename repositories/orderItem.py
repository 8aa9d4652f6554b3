from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.order_status import OrderStatus
from models.order import Order
from models.orderItem import OrderItem, OrderItemDTO


class OrderItemRepository:

    @staticmethod
    async def create_many(order_items: list[OrderItemDTO], session: Session | AsyncSession) -> list[OrderItemDTO]:
        entities = [OrderItem(**order_item_dto.model_dump(exclude_none=True)) for order_item_dto in order_items]
        session.add_all(entities)
        await session_flush(session)
        return [OrderItemDTO.model_validate(entity, from_attributes=True) for entity in entities]

    @staticmethod
    async def get_by_order_id(order_id: int, session: Session | AsyncSession) -> list[OrderItemDTO]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        result = await session_execute(stmt, session)
        return [OrderItemDTO.model_validate(order_item, from_attributes=True) for order_item in result.scalars().all()]

    @staticmethod
    async def exists_for_purchase(order_id: int,
                                  user_id: int,
                                  product_id: int,
                                  statuses: list[OrderStatus],
                                  session: Session | AsyncSession) -> bool:
        """True if the user's order contains the product and is in one of `statuses`."""
        stmt = (select(OrderItem.id)
                .join(Order, Order.id == OrderItem.order_id)
                .where(OrderItem.order_id == order_id,
                       OrderItem.product_id == product_id,
                       Order.user_id == user_id,
                       Order.order_status.in_(statuses))
                .limit(1))
        result = await session_execute(stmt, session)
        return result.scalar_one_or_none() is not None
