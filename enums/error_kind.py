from enum import Enum


class ErrorKind(str, Enum):
    """
    Discriminator carried by every ledger exception.

    Callers at the API boundary switch on this value instead of on the
    concrete exception class.
    """

    NOT_FOUND = "NotFound"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INVALID_QUANTITY = "InvalidQuantity"
    COUPON_EXPIRED = "CouponExpired"
    COUPON_USAGE_EXCEEDED = "CouponUsageExceeded"
    COUPON_MINIMUM_NOT_MET = "CouponMinimumNotMet"
    DUPLICATE_REVIEW = "DuplicateReview"
    INVALID_STATUS_TRANSITION = "InvalidStatusTransition"
    CONSTRAINT_VIOLATION = "ConstraintViolation"
