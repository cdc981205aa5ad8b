"""Structured operation results.

Every catalog service operation returns an ``OperationResult`` instead of
raising: a success flag, a human-readable message, a coarse status and,
on success, the affected entity.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

from storecatalog.domain.exceptions import DomainError

T = TypeVar("T")


class ResultStatus(str, Enum):
    """Coarse classification of an operation outcome."""

    OK = "ok"
    INVALID_IDENTITY = "invalid_identity"
    NOT_FOUND = "not_found"
    REFERENTIAL_VIOLATION = "referential_violation"
    VALIDATION_ERROR = "validation_error"
    PERSISTENCE_ERROR = "persistence_error"

    @classmethod
    def from_error(cls, error: DomainError) -> "ResultStatus":
        """Map a domain error onto a result status.

        Args:
            error: Domain error raised by an operation.

        Returns:
            Matching status; unknown error codes count as persistence errors.
        """
        try:
            return cls(error.error_code)
        except ValueError:
            return cls.PERSISTENCE_ERROR


@dataclass
class OperationResult(Generic[T]):
    """Result of a catalog operation.

    Attributes:
        success: Whether the operation completed.
        message: Human-readable outcome message.
        status: Coarse outcome classification.
        data: Affected entity on success.
        entity_id: Identity of the affected entity, when known.
        details: Extra error context on failure.
    """

    success: bool
    message: str
    status: ResultStatus
    data: T | None = None
    entity_id: UUID | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T,
        message: str,
        entity_id: UUID | None = None,
    ) -> "OperationResult[T]":
        """Build a successful result."""
        return cls(
            success=True,
            message=message,
            status=ResultStatus.OK,
            data=data,
            entity_id=entity_id,
        )

    @classmethod
    def failure(
        cls,
        error: DomainError,
        message: str,
        entity_id: UUID | None = None,
    ) -> "OperationResult[T]":
        """Build a failed result from a domain error."""
        return cls(
            success=False,
            message=message,
            status=ResultStatus.from_error(error),
            entity_id=entity_id,
            details=dict(error.details),
        )
