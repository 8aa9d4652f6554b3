import random
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_execute, session_flush
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from models.order import Order, OrderDTO


class OrderRepository:

    @staticmethod
    async def create(order_dto: OrderDTO, session: Session | AsyncSession) -> OrderDTO:
        order = Order(**order_dto.model_dump(exclude_none=True))
        session.add(order)
        await session_flush(session)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def get_by_id(order_id: int, session: Session | AsyncSession) -> OrderDTO | None:
        stmt = (select(Order)
                .where(Order.id == order_id)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        order = result.scalar_one_or_none()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        return None

    @staticmethod
    async def get_next_order_number(session: Session | AsyncSession) -> str:
        """
        Generates a unique order number in the format <PREFIX>-YYYY-XXXXXX
        Example: ORD-2025-AX7D8K

        6 character code from uppercase letters and digits without 0/O/1/I
        """
        year = datetime.now().year
        chars = '23456789ABCDEFGHJKLMNPQRSTUVWXYZ'

        for _ in range(10):
            code = ''.join(random.choices(chars, k=6))
            order_number = f"{config.ORDER_NUMBER_PREFIX}-{year}-{code}"

            stmt = select(Order.order_number).where(Order.order_number == order_number)
            result = await session_execute(stmt, session)
            if result.scalar_one_or_none() is None:
                return order_number

        # 32^6 (~1 billion) codes per year, should never happen
        raise RuntimeError("Could not generate unique order number after 10 attempts")

    @staticmethod
    async def compare_and_set_status(order_id: int,
                                     current_status: OrderStatus,
                                     new_status: OrderStatus,
                                     session: Session | AsyncSession,
                                     current_payment_status: PaymentStatus | None = None,
                                     **values) -> bool:
        """
        Move the order to `new_status` only if it is still in `current_status`.

        Extra column values (payment_status, dates, tracking_number) are written
        in the same statement. When `current_payment_status` is given the
        payment status must also still hold that value.

        Returns:
            False when another transaction changed the status first
        """
        conditions = [Order.id == order_id, Order.order_status == current_status]
        if current_payment_status is not None:
            conditions.append(Order.payment_status == current_payment_status)
        stmt = (update(Order)
                .where(*conditions)
                .values(order_status=new_status, **values)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def compare_and_set_payment_status(order_id: int,
                                             current_status: PaymentStatus,
                                             new_status: PaymentStatus,
                                             session: Session | AsyncSession) -> bool:
        stmt = (update(Order)
                .where(Order.id == order_id, Order.payment_status == current_status)
                .values(payment_status=new_status)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1
