"""
Custom exceptions for the order ledger.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application. Every exception carries a `kind` (ErrorKind) and a
`details` dict describing the violated precondition.

Exception Hierarchy:
--------------------
OrderLedgerException (base)
├── NotFoundException                    kind=NotFound
├── ConstraintViolationException         kind=ConstraintViolation
│   └── DeletionRestrictedException
├── OrderException
│   ├── OrderNotFoundException
│   ├── InsufficientStockException       kind=InsufficientStock
│   ├── InvalidQuantityException         kind=InvalidQuantity
│   └── InvalidStatusTransitionException kind=InvalidStatusTransition
├── CartException
│   ├── EmptyCartException
│   └── CartItemNotFoundException
├── ProductException
│   ├── ProductNotFoundException
│   ├── CategoryNotFoundException
│   └── CategoryCycleException
├── CouponException
│   ├── CouponNotFoundException
│   ├── CouponExpiredException           kind=CouponExpired
│   ├── CouponUsageExceededException     kind=CouponUsageExceeded
│   └── CouponMinimumNotMetException     kind=CouponMinimumNotMet
├── ReviewException
│   ├── ReviewNotFoundException
│   ├── DuplicateReviewException         kind=DuplicateReview
│   └── InvalidRatingException
└── UserException
    ├── UserNotFoundException
    └── AddressNotFoundException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id=123)

Callers switch on the discriminator:
    try:
        await OrderService.place_order(user_id, lines, session=session)
    except OrderLedgerException as e:
        if e.kind == ErrorKind.INSUFFICIENT_STOCK:
            ...
"""

from .base import OrderLedgerException, NotFoundException, ConstraintViolationException, DeletionRestrictedException
from .cart import CartException, EmptyCartException, CartItemNotFoundException
from .coupon import (
    CouponException,
    CouponNotFoundException,
    CouponExpiredException,
    CouponUsageExceededException,
    CouponMinimumNotMetException
)
from .order import (
    OrderException,
    OrderNotFoundException,
    InsufficientStockException,
    InvalidQuantityException,
    InvalidStatusTransitionException
)
from .product import ProductException, ProductNotFoundException, CategoryNotFoundException, CategoryCycleException
from .review import ReviewException, ReviewNotFoundException, DuplicateReviewException, InvalidRatingException
from .user import UserException, UserNotFoundException, AddressNotFoundException

__all__ = [
    # Base
    'OrderLedgerException',
    'NotFoundException',
    'ConstraintViolationException',
    'DeletionRestrictedException',

    # Cart
    'CartException',
    'EmptyCartException',
    'CartItemNotFoundException',

    # Coupon
    'CouponException',
    'CouponNotFoundException',
    'CouponExpiredException',
    'CouponUsageExceededException',
    'CouponMinimumNotMetException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'InsufficientStockException',
    'InvalidQuantityException',
    'InvalidStatusTransitionException',

    # Product / Category
    'ProductException',
    'ProductNotFoundException',
    'CategoryNotFoundException',
    'CategoryCycleException',

    # Review
    'ReviewException',
    'ReviewNotFoundException',
    'DuplicateReviewException',
    'InvalidRatingException',

    # User
    'UserException',
    'UserNotFoundException',
    'AddressNotFoundException',
]
