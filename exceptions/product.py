"""
Product and category exceptions.
"""

from .base import OrderLedgerException, NotFoundException, ConstraintViolationException


class ProductException(OrderLedgerException):
    """Base exception for catalog errors."""
    pass


class ProductNotFoundException(NotFoundException, ProductException):
    """Raised when product is not found in database."""

    def __init__(self, product_id: int):
        super().__init__("Product", product_id, details={'product_id': product_id})
        self.product_id = product_id


class CategoryNotFoundException(NotFoundException, ProductException):
    """Raised when category is not found in database."""

    def __init__(self, category_id: int):
        super().__init__("Category", category_id, details={'category_id': category_id})
        self.category_id = category_id


class CategoryCycleException(ConstraintViolationException, ProductException):
    """Raised when re-parenting a category would create a loop in the tree."""

    def __init__(self, category_id: int | None, parent_id: int):
        super().__init__(
            "category_acyclic",
            f"Category {category_id} cannot be placed under {parent_id}: parent chain would form a cycle",
            details={'category_id': category_id, 'parent_id': parent_id}
        )
        self.category_id = category_id
        self.parent_id = parent_id
