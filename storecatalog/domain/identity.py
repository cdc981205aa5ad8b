"""Entity identity helpers.

Every entity is identified by a 128-bit UUID. The all-zero UUID is the
sentinel for "unset / not yet assigned" and is never a valid target for
a mutating operation.
"""

from uuid import UUID, uuid4

from storecatalog.domain.exceptions import InvalidIdentityError

EMPTY_ID = UUID(int=0)


def new_identity() -> UUID:
    """Generate a fresh entity identity.

    Returns:
        Random UUID4.
    """
    return uuid4()


def is_empty_identity(value: UUID | str | None) -> bool:
    """Check whether a value is the sentinel (or missing) identity.

    Strings are parsed first; anything that does not parse as a UUID is
    treated as empty.

    Args:
        value: Identity to check.

    Returns:
        True if the identity is absent, unparseable, or all-zero.
    """
    if value is None:
        return True
    if isinstance(value, str):
        try:
            value = UUID(value)
        except ValueError:
            return True
    return value == EMPTY_ID


def require_identity(value: UUID | str | None, entity_type: str) -> UUID:
    """Parse an identity and reject the sentinel.

    Args:
        value: Identity supplied by a caller.
        entity_type: Entity name used in the error message.

    Returns:
        The identity as a UUID.

    Raises:
        InvalidIdentityError: If the identity is empty or malformed.
    """
    if is_empty_identity(value):
        raise InvalidIdentityError(entity_type, value)
    if isinstance(value, str):
        return UUID(value)
    return value
