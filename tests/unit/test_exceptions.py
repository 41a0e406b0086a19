"""Tests for domain exceptions.

Test Organization:
- TestDomainException: Base exception behavior
- TestLifecycleExceptions: Tombstone lifecycle errors and their context
- TestExceptionCodes: Exception code verification
- TestExceptionPropertyBased: Property-based tests with Hypothesis
"""

import pytest
from hypothesis import given
from uuid_extension import uuid7

from src.domain.exceptions import (
    AlreadyDeletedError,
    AuthorizationError,
    BusinessRuleViolationError,
    DomainException,
    EntityNotFoundError,
    HardDeleteBlockedError,
    NotDeletedError,
    ProtectedEntityError,
    ReferentialIntegrityError,
    SoftDeleteValidationError,
    TransactionRequiredError,
    ValidationError,
)
from tests.strategies import error_details_strategy, error_message_strategy


# ============================================================================
# Base Exception Tests
# ============================================================================


class TestDomainException:
    """Test base DomainException behavior."""

    def test_creates_exception_with_message_only(self) -> None:
        """Test creating exception with message only.

        Arrange: Message string
        Act: Create DomainException with message
        Assert: Exception has correct message and no details
        """
        # Arrange
        message = "Something went wrong"

        # Act
        exception = DomainException(message)

        # Assert
        assert exception.message == message
        assert str(exception) == message
        assert exception.details is None

    def test_creates_exception_with_list_details(self) -> None:
        """Test creating exception with message and list details.

        Arrange: Message and details list
        Act: Create DomainException
        Assert: Details are kept as given
        """
        # Arrange
        details = ["watchers: duplicate", "assignees: too many"]

        # Act
        exception = DomainException("Multiple reference errors", details=details)

        # Assert
        assert exception.details == details


# ============================================================================
# Lifecycle Exception Tests
# ============================================================================


class TestLifecycleExceptions:
    """Test the tombstone lifecycle errors."""

    def test_hard_delete_blocked_names_entity(self) -> None:
        """Test HardDeleteBlockedError message.

        Arrange: Entity type and details
        Act: Create HardDeleteBlockedError
        Assert: Message points to soft delete, entity type kept
        """
        # Act
        exception = HardDeleteBlockedError("User", {"table": "users"})

        # Assert
        assert exception.entity_type == "User"
        assert "use soft delete" in exception.message
        assert exception.details == {"table": "users"}

    @pytest.mark.parametrize("exc_type", [AlreadyDeletedError, NotDeletedError])
    def test_state_errors_carry_entity_and_id(self, exc_type: type[DomainException]) -> None:
        """Test AlreadyDeletedError and NotDeletedError context.

        Arrange: Entity type and id
        Act: Create the exception
        Assert: Details hold the entity type and string id
        """
        # Arrange
        entity_id = uuid7()

        # Act
        exception = exc_type("Vendor", entity_id)  # type: ignore[call-arg]

        # Assert
        assert exception.entity_type == "Vendor"  # type: ignore[attr-defined]
        assert exception.entity_id == entity_id  # type: ignore[attr-defined]
        assert exception.details == {"entity_type": "Vendor", "id": str(entity_id)}
        assert str(entity_id) in exception.message

    def test_transaction_required_names_operation(self) -> None:
        """Test TransactionRequiredError message."""
        exception = TransactionRequiredError("Department cascade delete")

        assert exception.operation == "Department cascade delete"
        assert exception.message == (
            "Department cascade delete must be performed within a transaction"
        )

    def test_referential_integrity_merges_field_into_details(self) -> None:
        """Test ReferentialIntegrityError details.

        Arrange: Field, message and extra details
        Act: Create ReferentialIntegrityError
        Assert: Field is exposed and merged into details
        """
        # Act
        exception = ReferentialIntegrityError(
            "watchers", "User is not a head of department", {"id": "abc"}
        )

        # Assert
        assert exception.field == "watchers"
        assert exception.details == {"field": "watchers", "id": "abc"}

    def test_referential_integrity_without_details(self) -> None:
        exception = ReferentialIntegrityError("parent", "Comment thread would form a cycle")

        assert exception.details == {"field": "parent"}


# ============================================================================
# Exception Code Tests
# ============================================================================


class TestExceptionCodes:
    """Test that every exception exposes a stable machine-readable code."""

    @pytest.mark.parametrize(
        ("exception", "code"),
        [
            (DomainException("x"), "DOMAIN_ERROR"),
            (EntityNotFoundError("x"), "ENTITY_NOT_FOUND"),
            (ValidationError("x"), "VALIDATION_ERROR"),
            (BusinessRuleViolationError("x"), "BUSINESS_RULE_VIOLATION"),
            (AuthorizationError("x"), "FORBIDDEN"),
            (HardDeleteBlockedError("User"), "HARD_DELETE_BLOCKED"),
            (SoftDeleteValidationError("x"), "SOFT_DELETE_VALIDATION"),
            (AlreadyDeletedError("User", None), "ALREADY_DELETED"),
            (NotDeletedError("User", None), "NOT_DELETED"),
            (TransactionRequiredError("op"), "TRANSACTION_REQUIRED"),
            (ReferentialIntegrityError("f", "x"), "REFERENTIAL_INTEGRITY"),
            (ProtectedEntityError("x"), "PROTECTED_ENTITY"),
        ],
    )
    def test_exception_code(self, exception: DomainException, code: str) -> None:
        """Test each exception's code and base class."""
        assert exception.code == code
        assert isinstance(exception, DomainException)


# ============================================================================
# Property-Based Tests
# ============================================================================


class TestExceptionPropertyBased:
    """Property-based tests for domain exceptions."""

    @given(message=error_message_strategy(), details=error_details_strategy())
    def test_message_and_details_are_preserved(self, message: str, details: object) -> None:
        """Test any message and details round-trip through the exception."""
        exception = BusinessRuleViolationError(message, details=details)  # type: ignore[arg-type]

        assert exception.message == message
        assert str(exception) == message
        assert exception.details == details

    @given(message=error_message_strategy())
    def test_exceptions_are_catchable_as_domain_exception(self, message: str) -> None:
        """Test raising a subclass is caught by DomainException."""
        with pytest.raises(DomainException) as exc_info:
            raise ProtectedEntityError(message)

        assert exc_info.value.message == message
