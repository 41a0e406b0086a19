"""Domain-specific exceptions for business logic errors.

This module defines the exception hierarchy for domain errors, providing
consistent error handling across the application layer. The tombstone
lifecycle errors (hard-delete blocking, guarded writes, idempotency and
referential integrity) all derive from :class:`DomainException` so the
presentation layer can map them to transport-level responses in one place.
"""

from typing import Any
from uuid import UUID


class DomainException(Exception):
    """Base exception for all domain-related errors.

    Provides a consistent interface for domain exceptions with error codes
    and optional contextual details.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
        details: Optional additional error context (dict or list)
    """

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | list[Any] | None = None) -> None:
        """Initialize domain exception.

        Args:
            message: Human-readable error description
            details: Optional additional context about the error
        """
        self.message = message
        self.details = details
        super().__init__(self.message)


class EntityNotFoundError(DomainException):
    """Raised when a requested entity does not exist."""

    code = "ENTITY_NOT_FOUND"


class ValidationError(DomainException):
    """Raised when input data fails business validation rules."""

    code = "VALIDATION_ERROR"


class BusinessRuleViolationError(DomainException):
    """Raised when an operation violates business rules.

    Used for operations that are well-formed but not allowed in the current
    state, e.g. deleting the last SuperAdmin of an organization or deleting
    a vendor still referenced by project tasks without a replacement.
    """

    code = "BUSINESS_RULE_VIOLATION"


class AuthorizationError(DomainException):
    """Raised when the acting user may not perform the requested operation."""

    code = "FORBIDDEN"


class HardDeleteBlockedError(DomainException):
    """Raised on any attempt to physically delete a soft-deletable record.

    There is no bypass through the ORM session: every deletion must go
    through the soft-delete primitives.
    """

    code = "HARD_DELETE_BLOCKED"

    def __init__(self, entity_type: str, details: dict[str, Any] | None = None) -> None:
        self.entity_type = entity_type
        super().__init__(
            f"Hard delete is not allowed for {entity_type}; use soft delete instead",
            details,
        )


class SoftDeleteValidationError(DomainException):
    """Raised when tombstone fields are written outside the sanctioned operations."""

    code = "SOFT_DELETE_VALIDATION"


class AlreadyDeletedError(DomainException):
    """Raised when soft-deleting a record that is already tombstoned."""

    code = "ALREADY_DELETED"

    def __init__(self, entity_type: str, entity_id: UUID | None) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} with ID {entity_id} is already deleted",
            {"entity_type": entity_type, "id": str(entity_id)},
        )


class NotDeletedError(DomainException):
    """Raised when restoring a record that is not tombstoned."""

    code = "NOT_DELETED"

    def __init__(self, entity_type: str, entity_id: UUID | None) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} with ID {entity_id} is not deleted",
            {"entity_type": entity_type, "id": str(entity_id)},
        )


class TransactionRequiredError(DomainException):
    """Raised when a cascade runs without an active transaction context."""

    code = "TRANSACTION_REQUIRED"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} must be performed within a transaction")


class ReferentialIntegrityError(DomainException):
    """Raised when a foreign-key-shaped field fails validation.

    Covers cross-tenant references, references to tombstoned records,
    cardinality and duplicate violations, thread depth and cycles, and the
    restore gate for children of tombstoned parents.

    Attributes:
        field: Name of the violated field
    """

    code = "REFERENTIAL_INTEGRITY"

    def __init__(self, field: str, message: str, details: dict[str, Any] | None = None) -> None:
        self.field = field
        super().__init__(message, {"field": field, **(details or {})})


class ProtectedEntityError(DomainException):
    """Raised on any attempt to delete the platform organization."""

    code = "PROTECTED_ENTITY"
