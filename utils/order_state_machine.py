"""
Order State Machine for validating order status transitions and maintaining consistency.

This module implements finite state machines for the order lifecycle and the
payment lifecycle and provides audit logging for all status changes.
"""

import logging
from typing import Dict, List, Optional, Set

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus

logger = logging.getLogger(__name__)

REFUND_PAYMENT_STATUSES = frozenset({PaymentStatus.REFUNDED, PaymentStatus.PARTIALLY_REFUNDED})


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: str, to_status: str, requires_refund: bool = False,
                 description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.requires_refund = requires_refund
        self.description = description

    def __repr__(self):
        refund_flag = " (Refund)" if self.requires_refund else ""
        return f"{self.from_status} -> {self.to_status}{refund_flag}"


class OrderStateMachine:
    """
    Finite state machine for order status transitions with validation and audit logging.

    Valid status transitions:
    - PENDING -> CONFIRMED -> PROCESSING -> SHIPPED -> DELIVERED
    - PENDING | CONFIRMED | PROCESSING -> CANCELLED (restocks items)
    - SHIPPED | DELIVERED -> REFUNDED (only together with a payment refund)

    Everything else is rejected, including staying in the same status.
    CANCELLED and REFUNDED are final.
    """

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        # Forward path
        OrderStatusTransition(
            OrderStatus.PENDING.value,
            OrderStatus.CONFIRMED.value,
            description="Order accepted"
        ),
        OrderStatusTransition(
            OrderStatus.CONFIRMED.value,
            OrderStatus.PROCESSING.value,
            description="Order is being prepared"
        ),
        OrderStatusTransition(
            OrderStatus.PROCESSING.value,
            OrderStatus.SHIPPED.value,
            description="Order handed to carrier"
        ),
        OrderStatusTransition(
            OrderStatus.SHIPPED.value,
            OrderStatus.DELIVERED.value,
            description="Order delivered to customer"
        ),

        # Cancellation before shipment
        OrderStatusTransition(
            OrderStatus.PENDING.value,
            OrderStatus.CANCELLED.value,
            description="Pending order cancelled"
        ),
        OrderStatusTransition(
            OrderStatus.CONFIRMED.value,
            OrderStatus.CANCELLED.value,
            description="Confirmed order cancelled"
        ),
        OrderStatusTransition(
            OrderStatus.PROCESSING.value,
            OrderStatus.CANCELLED.value,
            description="Order cancelled during processing"
        ),

        # Refund after shipment
        OrderStatusTransition(
            OrderStatus.SHIPPED.value,
            OrderStatus.REFUNDED.value,
            requires_refund=True,
            description="Shipped order refunded"
        ),
        OrderStatusTransition(
            OrderStatus.DELIVERED.value,
            OrderStatus.REFUNDED.value,
            requires_refund=True,
            description="Delivered order refunded"
        ),
    ]

    # Build transition map for fast lookup
    _transition_map: Dict[str, Set[str]] = {}
    _refund_required_transitions: Set[tuple] = set()
    _transition_descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps for performance"""
        if cls._transition_map:
            return  # Already built

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
            if transition.requires_refund:
                cls._refund_required_transitions.add((transition.from_status, transition.to_status))
            cls._transition_descriptions[(transition.from_status, transition.to_status)] = transition.description

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if a status transition is valid according to the state machine.

        Self transitions are not valid: re-applying the current status would
        repeat side effects such as restocking.
        """
        cls._build_transition_map()
        if from_status == to_status:
            return False
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def requires_refund(cls, from_status: str, to_status: str) -> bool:
        cls._build_transition_map()
        return (from_status, to_status) in cls._refund_required_transitions

    @classmethod
    def get_valid_transitions(cls, from_status: str) -> List[str]:
        """
        Get all valid next statuses from the current status.

        Args:
            from_status: Current order status

        Returns:
            List of valid next statuses
        """
        cls._build_transition_map()
        return sorted(cls._transition_map.get(from_status, set()))

    @classmethod
    def get_transition_description(cls, from_status: str, to_status: str) -> str:
        cls._build_transition_map()
        return cls._transition_descriptions.get(
            (from_status, to_status),
            f"Transition from {from_status} to {to_status}"
        )

    @classmethod
    def is_final_status(cls, status: str) -> bool:
        """Check if a status is final (no transitions allowed from it)."""
        cls._build_transition_map()
        return not cls._transition_map.get(status)

    @classmethod
    def validate_and_log_transition(cls, order_id: int, from_status: str, to_status: str,
                                    payment_status: Optional[str] = None) -> bool:
        """
        Validate a status transition and create audit log entry.

        Args:
            order_id: ID of the order being transitioned
            from_status: Current order status
            to_status: Desired new status
            payment_status: Payment status requested together with the change (refunds)

        Returns:
            True if transition is valid and logged, False otherwise
        """
        if not cls.is_valid_transition(from_status, to_status):
            logger.warning(f"Invalid status transition for order {order_id}: {from_status} -> {to_status}")
            return False

        if cls.requires_refund(from_status, to_status):
            refund_values = {status.value for status in REFUND_PAYMENT_STATUSES}
            if payment_status not in refund_values:
                logger.warning(f"Refund payment status required for transition {from_status} -> {to_status} "
                               f"on order {order_id} (got {payment_status})")
                return False

        transition_desc = cls.get_transition_description(from_status, to_status)
        logger.info(f"ORDER_STATUS_TRANSITION: Order {order_id} {from_status} -> {to_status}: {transition_desc}")
        return True


class PaymentStateMachine:
    """
    Payment status transitions:
    - PENDING -> PAID | FAILED
    - FAILED -> PENDING (retry)
    - PAID -> REFUNDED | PARTIALLY_REFUNDED
    - PARTIALLY_REFUNDED -> REFUNDED
    """

    _transition_map: Dict[str, Set[str]] = {
        PaymentStatus.PENDING.value: {PaymentStatus.PAID.value, PaymentStatus.FAILED.value},
        PaymentStatus.FAILED.value: {PaymentStatus.PENDING.value},
        PaymentStatus.PAID.value: {PaymentStatus.REFUNDED.value, PaymentStatus.PARTIALLY_REFUNDED.value},
        PaymentStatus.PARTIALLY_REFUNDED.value: {PaymentStatus.REFUNDED.value},
    }

    @classmethod
    def is_valid_transition(cls, from_status: str, to_status: str) -> bool:
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def get_valid_transitions(cls, from_status: str) -> List[str]:
        return sorted(cls._transition_map.get(from_status, set()))

    @classmethod
    def validate_and_log_transition(cls, order_id: int, from_status: str, to_status: str) -> bool:
        if not cls.is_valid_transition(from_status, to_status):
            logger.warning(f"Invalid payment status transition for order {order_id}: {from_status} -> {to_status}")
            return False
        logger.info(f"PAYMENT_STATUS_TRANSITION: Order {order_id} {from_status} -> {to_status}")
        return True


def get_next_valid_statuses(current_status: str) -> List[str]:
    """
    Get all valid next statuses for an order.

    Args:
        current_status: Current status of the order

    Returns:
        List of valid next statuses
    """
    return OrderStateMachine.get_valid_transitions(current_status)
