"""
Coupon-related exceptions.
"""

from datetime import datetime
from decimal import Decimal

from enums.error_kind import ErrorKind
from .base import OrderLedgerException, NotFoundException


class CouponException(OrderLedgerException):
    """Base exception for coupon errors."""
    pass


class CouponNotFoundException(NotFoundException, CouponException):
    """Raised when no coupon has the given code."""

    def __init__(self, code: str):
        super().__init__("Coupon", code, details={'code': code})
        self.code = code


class CouponExpiredException(CouponException):
    """
    Raised when a coupon is inactive or used outside its validity window.

    reason is one of 'inactive', 'not_started', 'expired'.
    """
    kind = ErrorKind.COUPON_EXPIRED

    def __init__(self, code: str, reason: str, now: datetime | None = None):
        super().__init__(
            f"Coupon '{code}' is not valid ({reason})",
            details={'code': code, 'reason': reason, 'now': now.isoformat() if now else None}
        )
        self.code = code
        self.reason = reason


class CouponUsageExceededException(CouponException):
    """Raised when a capped coupon has no redemptions left."""
    kind = ErrorKind.COUPON_USAGE_EXCEEDED

    def __init__(self, code: str, used_count: int, usage_limit: int):
        super().__init__(
            f"Coupon '{code}' usage limit reached ({used_count}/{usage_limit})",
            details={'code': code, 'used_count': used_count, 'usage_limit': usage_limit}
        )
        self.code = code
        self.used_count = used_count
        self.usage_limit = usage_limit


class CouponMinimumNotMetException(CouponException):
    """Raised when the order subtotal is below the coupon's minimum."""
    kind = ErrorKind.COUPON_MINIMUM_NOT_MET

    def __init__(self, code: str, subtotal: Decimal, minimum: Decimal):
        super().__init__(
            f"Coupon '{code}' requires a minimum order of {minimum} (subtotal {subtotal})",
            details={'code': code, 'subtotal': str(subtotal), 'minimum_order_amount': str(minimum)}
        )
        self.code = code
        self.subtotal = subtotal
        self.minimum = minimum
