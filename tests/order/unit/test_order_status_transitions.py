"""
Tests for OrderService.transition_order_status / transition_payment_status.
"""
import logging
from unittest.mock import AsyncMock, patch

import pytest

from enums.error_kind import ErrorKind
from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from exceptions import InvalidStatusTransitionException, OrderNotFoundException
from models.cartItem import CartItemDTO
from repositories.order import OrderRepository
from services.order import OrderService


async def _place(factory, session, stock=3, quantity=2):
    user_id = await factory.create_user()
    product_id = await factory.create_product(price="12.00", stock=stock)
    details = await OrderService.place_order(
        user_id, session, cart_lines=[CartItemDTO(product_id=product_id, quantity=quantity)]
    )
    return details.order.id, product_id


async def _advance(order_id, session, *statuses):
    order = None
    for status in statuses:
        order = await OrderService.transition_order_status(order_id, status, session)
    return order


class TestForwardPath:

    @pytest.mark.asyncio
    async def test_full_lifecycle_stamps_dates(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)

        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING)
        shipped = await OrderService.transition_order_status(
            order_id, OrderStatus.SHIPPED, test_session, tracking_number="1Z999AA10123456784"
        )
        assert shipped.order_status == OrderStatus.SHIPPED
        assert shipped.shipped_date is not None
        assert shipped.tracking_number == "1Z999AA10123456784"
        assert shipped.delivered_date is None

        delivered = await OrderService.transition_order_status(order_id, OrderStatus.DELIVERED, test_session)
        assert delivered.order_status == OrderStatus.DELIVERED
        assert delivered.delivered_date is not None

    @pytest.mark.asyncio
    async def test_skipping_a_step_is_rejected(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)

        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            await OrderService.transition_order_status(order_id, OrderStatus.SHIPPED, test_session)

        assert exc_info.value.kind == ErrorKind.INVALID_STATUS_TRANSITION
        assert exc_info.value.current_state == "pending"
        assert exc_info.value.requested_state == "shipped"

    @pytest.mark.asyncio
    async def test_self_transition_is_rejected(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)

        with pytest.raises(InvalidStatusTransitionException):
            await OrderService.transition_order_status(order_id, OrderStatus.PENDING, test_session)

    @pytest.mark.asyncio
    async def test_unknown_order(self, test_session):
        with pytest.raises(OrderNotFoundException) as exc_info:
            await OrderService.transition_order_status(1234, OrderStatus.CONFIRMED, test_session)

        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    @pytest.mark.asyncio
    async def test_transition_is_audit_logged(self, factory, test_session, caplog):
        order_id, _ = await _place(factory, test_session)

        with caplog.at_level(logging.INFO):
            await OrderService.transition_order_status(order_id, OrderStatus.CONFIRMED, test_session)

        assert f"ORDER_STATUS_TRANSITION: Order {order_id} pending -> confirmed" in caplog.text


class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancel_processing_order_restocks(self, factory, test_session):
        # stock 5, order of 2 leaves 3; cancelling returns it to 5
        order_id, product_id = await _place(factory, test_session, stock=5, quantity=2)
        assert (await factory.get_product(product_id)).stock_quantity == 3
        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING)

        cancelled = await OrderService.cancel_order(order_id, test_session)

        assert cancelled.order_status == OrderStatus.CANCELLED
        assert cancelled.cancelled_date is not None
        assert (await factory.get_product(product_id)).stock_quantity == 5

    @pytest.mark.asyncio
    async def test_cancel_twice_restocks_once(self, factory, test_session):
        order_id, product_id = await _place(factory, test_session, stock=5, quantity=2)
        await OrderService.cancel_order(order_id, test_session)

        with pytest.raises(InvalidStatusTransitionException):
            await OrderService.cancel_order(order_id, test_session)

        assert (await factory.get_product(product_id)).stock_quantity == 5

    @pytest.mark.asyncio
    async def test_cannot_cancel_shipped_order(self, factory, test_session):
        order_id, product_id = await _place(factory, test_session)
        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)

        with pytest.raises(InvalidStatusTransitionException):
            await OrderService.cancel_order(order_id, test_session)

        assert (await factory.get_product(product_id)).stock_quantity == 1

    @pytest.mark.asyncio
    async def test_missing_product_logs_reconciliation_warning(self, factory, test_session, caplog):
        order_id, _ = await _place(factory, test_session)

        with patch("services.order.ProductRepository.increment_stock", new=AsyncMock(return_value=False)):
            with caplog.at_level(logging.WARNING):
                cancelled = await OrderService.cancel_order(order_id, test_session)

        assert cancelled.order_status == OrderStatus.CANCELLED
        assert "RECONCILIATION" in caplog.text


class TestRefunds:

    @pytest.mark.asyncio
    async def test_refund_requires_payment_refund(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)
        await OrderService.transition_payment_status(order_id, PaymentStatus.PAID, test_session)
        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)

        with pytest.raises(InvalidStatusTransitionException):
            await OrderService.transition_order_status(order_id, OrderStatus.REFUNDED, test_session)

    @pytest.mark.asyncio
    async def test_refund_delivered_order_does_not_restock(self, factory, test_session):
        order_id, product_id = await _place(factory, test_session, stock=3, quantity=2)
        await OrderService.transition_payment_status(order_id, PaymentStatus.PAID, test_session)
        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING,
                       OrderStatus.SHIPPED, OrderStatus.DELIVERED)

        refunded = await OrderService.transition_order_status(
            order_id, OrderStatus.REFUNDED, test_session, payment_status=PaymentStatus.PARTIALLY_REFUNDED
        )

        assert refunded.order_status == OrderStatus.REFUNDED
        assert refunded.payment_status == PaymentStatus.PARTIALLY_REFUNDED
        assert (await factory.get_product(product_id)).stock_quantity == 1

    @pytest.mark.asyncio
    async def test_refund_of_unpaid_order_rejected(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)
        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)

        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            await OrderService.transition_order_status(
                order_id, OrderStatus.REFUNDED, test_session, payment_status=PaymentStatus.REFUNDED
            )

        assert exc_info.value.field == "payment_status"
        order = (await OrderService.get_order(order_id, test_session)).order
        assert order.order_status == OrderStatus.SHIPPED

    @pytest.mark.asyncio
    async def test_refund_after_payment_already_refunded(self, factory, test_session):
        order_id, product_id = await _place(factory, test_session, stock=3, quantity=2)
        await OrderService.transition_payment_status(order_id, PaymentStatus.PAID, test_session)
        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)
        await OrderService.transition_payment_status(order_id, PaymentStatus.REFUNDED, test_session)

        refunded = await OrderService.transition_order_status(order_id, OrderStatus.REFUNDED, test_session)

        assert refunded.order_status == OrderStatus.REFUNDED
        assert refunded.payment_status == PaymentStatus.REFUNDED
        assert (await factory.get_product(product_id)).stock_quantity == 1


class TestPaymentStatus:

    @pytest.mark.asyncio
    async def test_payment_lifecycle(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)

        failed = await OrderService.transition_payment_status(order_id, PaymentStatus.FAILED, test_session)
        assert failed.payment_status == PaymentStatus.FAILED
        await OrderService.transition_payment_status(order_id, PaymentStatus.PENDING, test_session)
        await OrderService.transition_payment_status(order_id, PaymentStatus.PAID, test_session)
        await OrderService.transition_payment_status(order_id, PaymentStatus.PARTIALLY_REFUNDED, test_session)
        refunded = await OrderService.transition_payment_status(order_id, PaymentStatus.REFUNDED, test_session)

        assert refunded.payment_status == PaymentStatus.REFUNDED
        assert refunded.order_status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_paid_cannot_go_back_to_pending(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)
        await OrderService.transition_payment_status(order_id, PaymentStatus.PAID, test_session)

        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            await OrderService.transition_payment_status(order_id, PaymentStatus.PENDING, test_session)

        assert exc_info.value.details['field'] == "payment_status"


class TestCompareAndSet:

    @pytest.mark.asyncio
    async def test_status_write_skipped_when_payment_status_moved(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)

        applied = await OrderRepository.compare_and_set_status(
            order_id, OrderStatus.PENDING, OrderStatus.CONFIRMED, test_session,
            current_payment_status=PaymentStatus.PAID, payment_status=PaymentStatus.REFUNDED
        )
        await test_session.commit()

        assert applied is False
        order = (await OrderService.get_order(order_id, test_session)).order
        assert order.order_status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_status_and_payment_written_together_when_both_match(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)

        applied = await OrderRepository.compare_and_set_status(
            order_id, OrderStatus.PENDING, OrderStatus.CONFIRMED, test_session,
            current_payment_status=PaymentStatus.PENDING, payment_status=PaymentStatus.PAID
        )
        await test_session.commit()

        assert applied is True
        order = (await OrderService.get_order(order_id, test_session)).order
        assert order.order_status == OrderStatus.CONFIRMED
        assert order.payment_status == PaymentStatus.PAID

    @pytest.mark.asyncio
    async def test_payment_changed_between_read_and_write(self, factory, test_session):
        order_id, _ = await _place(factory, test_session)
        await OrderService.transition_payment_status(order_id, PaymentStatus.PAID, test_session)
        await _advance(order_id, test_session, OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED)

        real_compare_and_set = OrderRepository.compare_and_set_status

        async def payment_refunded_elsewhere(order_id, current_status, new_status, session, **kwargs):
            # Another writer moves payment to partially_refunded just before the status write
            await OrderRepository.compare_and_set_payment_status(
                order_id, PaymentStatus.PAID, PaymentStatus.PARTIALLY_REFUNDED, session
            )
            return await real_compare_and_set(order_id, current_status, new_status, session, **kwargs)

        with patch.object(OrderRepository, "compare_and_set_status", side_effect=payment_refunded_elsewhere):
            with pytest.raises(InvalidStatusTransitionException) as exc_info:
                await OrderService.transition_order_status(
                    order_id, OrderStatus.REFUNDED, test_session, payment_status=PaymentStatus.REFUNDED
                )

        assert exc_info.value.field == "payment_status"
        assert exc_info.value.current_state == "partially_refunded"
        order = (await OrderService.get_order(order_id, test_session)).order
        assert order.order_status == OrderStatus.SHIPPED
        assert order.payment_status == PaymentStatus.PAID
