from sqlalchemy import select, update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.coupon import Coupon, CouponDTO, CouponUsage, CouponUsageDTO


class CouponRepository:

    @staticmethod
    async def create(coupon_dto: CouponDTO, session: Session | AsyncSession) -> CouponDTO:
        coupon = Coupon(**coupon_dto.model_dump(exclude_none=True))
        session.add(coupon)
        await session_flush(session)
        return CouponDTO.model_validate(coupon, from_attributes=True)

    @staticmethod
    async def get_by_code(code: str, session: Session | AsyncSession) -> CouponDTO | None:
        stmt = (select(Coupon)
                .where(Coupon.code == code)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        coupon = result.scalar_one_or_none()
        if coupon is not None:
            return CouponDTO.model_validate(coupon, from_attributes=True)
        return None

    @staticmethod
    async def get_by_id(coupon_id: int, session: Session | AsyncSession) -> CouponDTO | None:
        stmt = (select(Coupon)
                .where(Coupon.id == coupon_id)
                .execution_options(populate_existing=True))
        result = await session_execute(stmt, session)
        coupon = result.scalar_one_or_none()
        if coupon is not None:
            return CouponDTO.model_validate(coupon, from_attributes=True)
        return None

    @staticmethod
    async def increment_used_count(coupon_id: int, session: Session | AsyncSession) -> bool:
        """
        Conditional increment guarded by the usage limit.

        Returns:
            False when the coupon has no redemptions left
        """
        stmt = (update(Coupon)
                .where(Coupon.id == coupon_id,
                       or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit))
                .values(used_count=Coupon.used_count + 1)
                .execution_options(synchronize_session=False))
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def create_usage(usage_dto: CouponUsageDTO, session: Session | AsyncSession) -> CouponUsageDTO:
        usage = CouponUsage(**usage_dto.model_dump(exclude_none=True))
        session.add(usage)
        await session_flush(session)
        return CouponUsageDTO.model_validate(usage, from_attributes=True)

    @staticmethod
    async def get_usage_by_order_id(order_id: int, session: Session | AsyncSession) -> CouponUsageDTO | None:
        stmt = select(CouponUsage).where(CouponUsage.order_id == order_id)
        result = await session_execute(stmt, session)
        usage = result.scalar_one_or_none()
        if usage is not None:
            return CouponUsageDTO.model_validate(usage, from_attributes=True)
        return None
