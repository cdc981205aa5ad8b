"""Domain layer - identities and the catalog error taxonomy."""

from storecatalog.domain.exceptions import (
    CatalogValidationError,
    DomainError,
    EntityNotFoundError,
    InvalidIdentityError,
    InvalidParentError,
    InvalidStateTransitionError,
    PersistenceError,
    ReferentialViolationError,
)
from storecatalog.domain.identity import (
    EMPTY_ID,
    is_empty_identity,
    new_identity,
    require_identity,
)

__all__ = [
    # Identity
    "EMPTY_ID",
    "is_empty_identity",
    "new_identity",
    "require_identity",
    # Exceptions
    "CatalogValidationError",
    "DomainError",
    "EntityNotFoundError",
    "InvalidIdentityError",
    "InvalidParentError",
    "InvalidStateTransitionError",
    "PersistenceError",
    "ReferentialViolationError",
]
