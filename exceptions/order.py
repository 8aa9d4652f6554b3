"""
Order-related exceptions.
"""

from enums.error_kind import ErrorKind
from .base import OrderLedgerException, NotFoundException


class OrderException(OrderLedgerException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(NotFoundException, OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_id: int):
        super().__init__("Order", order_id, details={'order_id': order_id})
        self.order_id = order_id


class InsufficientStockException(OrderException):
    """Raised when a product cannot cover the requested quantity (or is inactive)."""
    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            details={'product_id': product_id, 'requested': requested, 'available': available}
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InvalidQuantityException(OrderException):
    """Raised when a line quantity is zero or negative."""
    kind = ErrorKind.INVALID_QUANTITY

    def __init__(self, product_id: int, quantity: int):
        super().__init__(
            f"Invalid quantity {quantity} for product {product_id}: must be positive",
            details={'product_id': product_id, 'quantity': quantity}
        )
        self.product_id = product_id
        self.quantity = quantity


class InvalidStatusTransitionException(OrderException):
    """Raised when the order (or payment) state machine refuses a transition."""
    kind = ErrorKind.INVALID_STATUS_TRANSITION

    def __init__(self, order_id: int, current_state: str, requested_state: str, field: str = "order_status"):
        super().__init__(
            f"Order {order_id}: {field} cannot change from '{current_state}' to '{requested_state}'",
            details={
                'order_id': order_id,
                'field': field,
                'current_state': current_state,
                'requested_state': requested_state,
            }
        )
        self.order_id = order_id
        self.field = field
        self.current_state = current_state
        self.requested_state = requested_state
