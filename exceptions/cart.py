"""
Cart-related exceptions.
"""

from .base import OrderLedgerException, NotFoundException, ConstraintViolationException


class CartException(OrderLedgerException):
    """Base exception for cart-related errors."""
    pass


class EmptyCartException(ConstraintViolationException, CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, user_id: int):
        super().__init__(
            "cart_not_empty",
            f"Cart is empty for user {user_id}",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class CartItemNotFoundException(NotFoundException, CartException):
    """Raised when a user has no cart line for the product."""

    def __init__(self, user_id: int, product_id: int):
        super().__init__(
            "Cart item",
            product_id,
            details={'user_id': user_id, 'product_id': product_id}
        )
        self.user_id = user_id
        self.product_id = product_id
