"""
User-related exceptions.
"""

from .base import OrderLedgerException, NotFoundException


class UserException(OrderLedgerException):
    """Base exception for user-related errors."""
    pass


class UserNotFoundException(NotFoundException, UserException):
    """Raised when user is not found in database."""

    def __init__(self, user_id: int):
        super().__init__("User", user_id, details={'user_id': user_id})
        self.user_id = user_id


class AddressNotFoundException(NotFoundException, UserException):
    """Raised when an address does not exist or belongs to another user."""

    def __init__(self, address_id: int, user_id: int):
        super().__init__("Address", address_id, details={'address_id': address_id, 'user_id': user_id})
        self.address_id = address_id
        self.user_id = user_id
