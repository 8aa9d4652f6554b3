import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.discount_type import DiscountType
from exceptions.coupon import (
    CouponNotFoundException,
    CouponExpiredException,
    CouponUsageExceededException,
    CouponMinimumNotMetException
)
from models.coupon import CouponDTO, CouponUsageDTO
from repositories.coupon import CouponRepository
from utils.money import to_money, percentage_of, ZERO

logger = logging.getLogger(__name__)


class CouponService:

    @staticmethod
    async def validate_coupon(code: str,
                              subtotal: Decimal,
                              session: Session | AsyncSession,
                              now: datetime | None = None) -> CouponDTO:
        """
        Check that a coupon can be applied to an order with the given subtotal.

        Checks run in this order and stop at the first failure:
        1. coupon exists (CouponNotFoundException)
        2. is_active and start_date <= now < end_date (CouponExpiredException)
        3. used_count < usage_limit when capped (CouponUsageExceededException)
        4. subtotal >= minimum_order_amount (CouponMinimumNotMetException)
        """
        now = now or datetime.now()
        coupon = await CouponRepository.get_by_code(code, session)
        if coupon is None:
            raise CouponNotFoundException(code)

        if not coupon.is_active:
            raise CouponExpiredException(code, "inactive", now)
        if coupon.start_date is not None and now < coupon.start_date:
            raise CouponExpiredException(code, "not_started", now)
        if coupon.end_date is not None and now >= coupon.end_date:
            raise CouponExpiredException(code, "expired", now)

        if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
            raise CouponUsageExceededException(code, coupon.used_count, coupon.usage_limit)

        minimum = coupon.minimum_order_amount or ZERO
        if subtotal < minimum:
            raise CouponMinimumNotMetException(code, subtotal, minimum)

        return coupon

    @staticmethod
    def calculate_discount(coupon: CouponDTO, subtotal: Decimal) -> Decimal:
        """
        Discount for `subtotal`, rounded half-up to cents.

        percentage:   subtotal * value / 100
        fixed_amount: min(value, subtotal)
        Both are capped by maximum_discount_amount when set.

        Example:
            10% coupon, subtotal 100.00           -> 10.00
            10% coupon, max 5.00, subtotal 100.00 -> 5.00
        """
        if coupon.discount_type == DiscountType.PERCENTAGE:
            discount = percentage_of(subtotal, coupon.discount_value)
        else:
            discount = min(to_money(coupon.discount_value), to_money(subtotal))

        if coupon.maximum_discount_amount is not None:
            discount = min(discount, to_money(coupon.maximum_discount_amount))

        return max(discount, ZERO)

    @staticmethod
    async def redeem(coupon: CouponDTO,
                     user_id: int,
                     order_id: int,
                     discount: Decimal,
                     session: Session | AsyncSession) -> CouponUsageDTO:
        """
        Count one redemption and record it against the order.

        The increment is conditional on the usage limit, so concurrent
        checkouts cannot push used_count past usage_limit.
        Must run inside the checkout transaction.
        """
        redeemed = await CouponRepository.increment_used_count(coupon.id, session)
        if not redeemed:
            current = await CouponRepository.get_by_id(coupon.id, session)
            logger.info(f"🎟️ Coupon {coupon.code} exhausted by a concurrent order (order {order_id} rejected)")
            raise CouponUsageExceededException(coupon.code, current.used_count, current.usage_limit)

        usage = await CouponRepository.create_usage(CouponUsageDTO(
            coupon_id=coupon.id,
            user_id=user_id,
            order_id=order_id,
            discount_applied=discount
        ), session)
        logger.info(f"🎟️ Coupon {coupon.code} redeemed on order {order_id}: -{discount}")
        return usage
