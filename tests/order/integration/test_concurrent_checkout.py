"""
Integration tests: competing transactions on the same rows.

Each contender uses its own session (own connection) against the same
file-backed SQLite database, so the conditional UPDATEs and the
BEGIN IMMEDIATE write lock are exercised for real.
"""
import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from contextlib import asynccontextmanager

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from enums.order_status import OrderStatus
from exceptions import (
    InsufficientStockException,
    CouponUsageExceededException,
    InvalidStatusTransitionException,
)
from models.cartItem import CartItemDTO
from models.order import Order
from services.order import OrderService


async def _place_in_own_session(session_maker, user_id, product_id, quantity, coupon_code=None):
    async with session_maker() as session:
        return await OrderService.place_order(
            user_id, session,
            cart_lines=[CartItemDTO(product_id=product_id, quantity=quantity)],
            coupon_code=coupon_code
        )


class TestConcurrentCheckout:

    @pytest.mark.asyncio
    async def test_last_unit_is_sold_once(self, factory, session_maker):
        first_user = await factory.create_user()
        second_user = await factory.create_user()
        product_id = await factory.create_product(stock=1)

        results = await asyncio.gather(
            _place_in_own_session(session_maker, first_user, product_id, 1),
            _place_in_own_session(session_maker, second_user, product_id, 1),
            return_exceptions=True
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientStockException)
        assert (await factory.get_product(product_id)).stock_quantity == 0

        async with session_maker() as session:
            order_count = (await session.execute(select(func.count()).select_from(Order))).scalar()
        assert order_count == 1

    @pytest.mark.asyncio
    async def test_many_buyers_never_oversell(self, factory, session_maker):
        product_id = await factory.create_product(stock=3)
        users = [await factory.create_user() for _ in range(6)]

        results = await asyncio.gather(
            *(_place_in_own_session(session_maker, user_id, product_id, 1) for user_id in users),
            return_exceptions=True
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        assert len(successes) == 3
        assert all(isinstance(r, InsufficientStockException) for r in results if isinstance(r, Exception))
        assert (await factory.get_product(product_id)).stock_quantity == 0

    @pytest.mark.asyncio
    async def test_single_use_coupon_redeemed_once(self, factory, session_maker):
        first_user = await factory.create_user()
        second_user = await factory.create_user()
        product_id = await factory.create_product(price="30.00", stock=10)
        await factory.create_coupon("SINGLE", value="10", usage_limit=1)

        results = await asyncio.gather(
            _place_in_own_session(session_maker, first_user, product_id, 1, "SINGLE"),
            _place_in_own_session(session_maker, second_user, product_id, 1, "SINGLE"),
            return_exceptions=True
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], CouponUsageExceededException)
        coupon = await factory.get_coupon("SINGLE")
        assert coupon.used_count == 1
        # The rejected order released its stock decrement
        assert (await factory.get_product(product_id)).stock_quantity == 9

    @pytest.mark.asyncio
    async def test_concurrent_cancel_restocks_once(self, factory, session_maker):
        user_id = await factory.create_user()
        product_id = await factory.create_product(stock=5)
        details = await _place_in_own_session(session_maker, user_id, product_id, 2)

        async def cancel():
            async with session_maker() as session:
                return await OrderService.cancel_order(details.order.id, session)

        results = await asyncio.gather(cancel(), cancel(), return_exceptions=True)

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert successes[0].order_status == OrderStatus.CANCELLED
        assert isinstance(failures[0], InvalidStatusTransitionException)
        assert (await factory.get_product(product_id)).stock_quantity == 5


class TestCheckoutRetry:

    @pytest.mark.asyncio
    async def test_lock_error_is_retried(self, factory, session_maker):
        user_id = await factory.create_user()
        product_id = await factory.create_product(price="3.00", stock=2)

        @asynccontextmanager
        async def test_db_session():
            async with session_maker() as session:
                yield session

        real_place_order = OrderService.place_order
        attempts = []

        async def flaky_place_order(*args, **kwargs):
            attempts.append(1)
            if len(attempts) == 1:
                raise OperationalError("BEGIN IMMEDIATE", {}, Exception("database is locked"))
            return await real_place_order(*args, **kwargs)

        with patch("services.order.get_db_session", test_db_session), \
                patch("services.order.OrderService.place_order", new=flaky_place_order), \
                patch("utils.transaction_manager.asyncio.sleep", new=AsyncMock()):
            details = await OrderService.checkout(
                user_id, cart_lines=[CartItemDTO(product_id=product_id, quantity=1)]
            )

        assert len(attempts) == 2
        assert details.order.total_amount == Decimal("3.00")
        assert (await factory.get_product(product_id)).stock_quantity == 1
