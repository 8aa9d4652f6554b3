"""
Review-related exceptions.
"""

from enums.error_kind import ErrorKind
from .base import OrderLedgerException, NotFoundException, ConstraintViolationException


class ReviewException(OrderLedgerException):
    """Base exception for review errors."""
    pass


class ReviewNotFoundException(NotFoundException, ReviewException):
    def __init__(self, review_id: int):
        super().__init__("Review", review_id, details={'review_id': review_id})
        self.review_id = review_id


class DuplicateReviewException(ReviewException):
    """Raised when the user already reviewed the product."""
    kind = ErrorKind.DUPLICATE_REVIEW

    def __init__(self, user_id: int, product_id: int):
        super().__init__(
            f"User {user_id} already reviewed product {product_id}",
            details={'user_id': user_id, 'product_id': product_id}
        )
        self.user_id = user_id
        self.product_id = product_id


class InvalidRatingException(ConstraintViolationException, ReviewException):
    """Raised when rating is outside 1..5."""

    def __init__(self, rating: int):
        super().__init__(
            "review_rating_range",
            f"Rating {rating} is out of range (1-5)",
            details={'rating': rating}
        )
        self.rating = rating
