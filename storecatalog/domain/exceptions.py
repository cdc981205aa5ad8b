"""Domain exceptions.

All domain-level errors raised by the catalog core. Each error carries a
machine-readable ``error_code`` that the application layer maps onto a
structured result status.
"""

from typing import Any, ClassVar


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    error_code: ClassVar[str] = "domain_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Identity Errors
# ============================================================================


class InvalidIdentityError(DomainError):
    """Raised when a caller supplies the empty (sentinel) identity."""

    error_code = "invalid_identity"

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        message: str | None = None,
    ) -> None:
        """Initialize invalid identity error.

        Args:
            entity_type: Type of entity (e.g., "Product").
            entity_id: The rejected identity value.
            message: Optional override for the default message.
        """
        super().__init__(
            message or f"Invalid {entity_type} identity: {entity_id!r}",
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class InvalidParentError(InvalidIdentityError):
    """Raised when a variant is submitted without a parent product identity."""

    def __init__(self, parent_id: Any) -> None:
        """Initialize invalid parent error.

        Args:
            parent_id: The rejected parent product identity.
        """
        super().__init__("Product", parent_id, message=f"Invalid Product_Id: {parent_id!r}")


class EntityNotFoundError(DomainError):
    """Raised when a well-formed identity matches no stored row."""

    error_code = "not_found"

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        """Initialize entity not found error.

        Args:
            entity_type: Type of entity (e.g., "Product").
            entity_id: The identity that was looked up.
        """
        super().__init__(
            f"{entity_type} {entity_id} not found",
            details={"entity_type": entity_type, "entity_id": str(entity_id)},
        )


# ============================================================================
# Integrity Errors
# ============================================================================


class ReferentialViolationError(DomainError):
    """Raised when a write references a Category or Product that does not exist."""

    error_code = "referential_violation"

    def __init__(self, entity_type: str, missing_ids: list[Any]) -> None:
        """Initialize referential violation error.

        Args:
            entity_type: Type of the referenced entity.
            missing_ids: Identities that could not be resolved.
        """
        missing = [str(value) for value in missing_ids]
        super().__init__(
            f"{entity_type} does not exist: {', '.join(missing)}",
            details={"entity_type": entity_type, "missing_ids": missing},
        )


class CatalogValidationError(DomainError):
    """Raised when an entity draft violates a field-level rule."""

    error_code = "validation_error"

    def __init__(self, field: str, value: Any, reason: str) -> None:
        """Initialize validation error.

        Args:
            field: Offending field name.
            value: Offending value.
            reason: Explanation of the rule that was violated.
        """
        super().__init__(
            f"Invalid {field} {value!r}: {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class PersistenceError(DomainError):
    """Raised when the storage layer fails without a domain meaning."""

    error_code = "persistence_error"

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        """Initialize persistence error.

        Args:
            operation: Storage operation that failed.
            cause: Underlying exception or description.
        """
        super().__init__(
            f"Storage failure during {operation}: {cause}",
            details={"operation": operation, "cause": str(cause)},
        )


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(DomainError):
    """Raised when a mutation flow attempts an invalid state transition.

    This indicates a programming error in the calling service rather
    than bad caller input.
    """

    def __init__(
        self,
        entity_type: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity being mutated.
            current_state: Current state of the flow.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type} mutation "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )
