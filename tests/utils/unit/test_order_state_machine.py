"""
Tests for the order and payment state machines.
"""
import pytest

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from utils.order_state_machine import OrderStateMachine, PaymentStateMachine, get_next_valid_statuses


ALLOWED_ORDER_TRANSITIONS = {
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.REFUNDED),
    (OrderStatus.DELIVERED, OrderStatus.REFUNDED),
}


class TestOrderStateMachine:

    @pytest.mark.parametrize("from_status", list(OrderStatus))
    @pytest.mark.parametrize("to_status", list(OrderStatus))
    def test_transition_table(self, from_status, to_status):
        expected = (from_status, to_status) in ALLOWED_ORDER_TRANSITIONS
        assert OrderStateMachine.is_valid_transition(from_status.value, to_status.value) is expected

    def test_final_statuses(self):
        assert OrderStateMachine.is_final_status(OrderStatus.CANCELLED.value)
        assert OrderStateMachine.is_final_status(OrderStatus.REFUNDED.value)
        assert not OrderStateMachine.is_final_status(OrderStatus.DELIVERED.value)

    def test_refund_needs_refund_payment_status(self):
        shipped, refunded = OrderStatus.SHIPPED.value, OrderStatus.REFUNDED.value

        assert OrderStateMachine.requires_refund(shipped, refunded)
        assert not OrderStateMachine.validate_and_log_transition(1, shipped, refunded)
        assert not OrderStateMachine.validate_and_log_transition(1, shipped, refunded, PaymentStatus.PAID.value)
        assert OrderStateMachine.validate_and_log_transition(1, shipped, refunded, PaymentStatus.REFUNDED.value)
        assert OrderStateMachine.validate_and_log_transition(
            1, shipped, refunded, PaymentStatus.PARTIALLY_REFUNDED.value
        )

    def test_next_statuses(self):
        assert get_next_valid_statuses(OrderStatus.PROCESSING.value) == ["cancelled", "shipped"]
        assert get_next_valid_statuses(OrderStatus.CANCELLED.value) == []


class TestPaymentStateMachine:

    @pytest.mark.parametrize("from_status, to_status, expected", [
        (PaymentStatus.PENDING, PaymentStatus.PAID, True),
        (PaymentStatus.PENDING, PaymentStatus.FAILED, True),
        (PaymentStatus.FAILED, PaymentStatus.PENDING, True),
        (PaymentStatus.PAID, PaymentStatus.REFUNDED, True),
        (PaymentStatus.PAID, PaymentStatus.PARTIALLY_REFUNDED, True),
        (PaymentStatus.PARTIALLY_REFUNDED, PaymentStatus.REFUNDED, True),
        (PaymentStatus.PENDING, PaymentStatus.REFUNDED, False),
        (PaymentStatus.PAID, PaymentStatus.PENDING, False),
        (PaymentStatus.REFUNDED, PaymentStatus.PAID, False),
        (PaymentStatus.PAID, PaymentStatus.PAID, False),
    ])
    def test_transitions(self, from_status, to_status, expected):
        assert PaymentStateMachine.is_valid_transition(from_status.value, to_status.value) is expected
