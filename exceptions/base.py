"""
Base exception classes for the order ledger.
"""

from enums.error_kind import ErrorKind


class OrderLedgerException(Exception):
    """
    Base exception for all order ledger errors.

    All custom exceptions in the ledger should inherit from this class.
    This allows catching all ledger-specific exceptions with a single handler.

    Attributes:
        message: Human-readable error message
        details: Optional dict with additional context (entity IDs, states, etc.)
        kind: ErrorKind discriminator, stable across releases
    """

    kind: ErrorKind = ErrorKind.CONSTRAINT_VIOLATION

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation with context."""
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class NotFoundException(OrderLedgerException):
    """Base for every 'entity does not exist' error."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id, details: dict | None = None):
        super().__init__(
            f"{entity} {entity_id} not found",
            details={'entity': entity, 'id': entity_id, **(details or {})}
        )
        self.entity = entity
        self.entity_id = entity_id


class ConstraintViolationException(OrderLedgerException):
    """Raised when a write would break a data integrity rule."""
    kind = ErrorKind.CONSTRAINT_VIOLATION

    def __init__(self, constraint: str, message: str | None = None, details: dict | None = None):
        super().__init__(
            message or f"Constraint '{constraint}' violated",
            details={'constraint': constraint, **(details or {})}
        )
        self.constraint = constraint


class DeletionRestrictedException(ConstraintViolationException):
    """Raised when dependent rows forbid deleting an entity."""

    def __init__(self, entity: str, entity_id: int, dependent: str, count: int):
        super().__init__(
            f"{entity}_delete_restricted",
            f"{entity} {entity_id} cannot be deleted: referenced by {count} {dependent}",
            details={'entity': entity, 'id': entity_id, 'dependent': dependent, 'count': count}
        )
        self.entity_id = entity_id
        self.dependent = dependent
        self.count = count
