"""Shared mutation flow.

Every mutating operation on an existing entity (product, variant,
promotion) follows the same path:

    UNVALIDATED ──► IDENTITY_CHECKED ──► FETCHED ──► MUTATED ──► PERSISTED
         │                 │               │            │
         ▼                 ▼               ▼            ▼
    INVALID_IDENTITY    NOT_FOUND   PERSISTENCE_ERROR (from any active state)

``EntityMutation`` drives that path once, parameterized by entity kind,
instead of each service re-implementing it.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

import structlog

from storecatalog.application.unit_of_work import UnitOfWork
from storecatalog.catalog.gateway import EntityKind
from storecatalog.domain.exceptions import (
    DomainError,
    EntityNotFoundError,
    InvalidIdentityError,
    InvalidStateTransitionError,
    PersistenceError,
)
from storecatalog.domain.identity import require_identity

logger = structlog.get_logger()

E = TypeVar("E")


class MutationState(str, Enum):
    """States of a mutation flow."""

    UNVALIDATED = "unvalidated"
    IDENTITY_CHECKED = "identity_checked"
    FETCHED = "fetched"
    MUTATED = "mutated"
    PERSISTED = "persisted"
    INVALID_IDENTITY = "invalid_identity"
    NOT_FOUND = "not_found"
    PERSISTENCE_ERROR = "persistence_error"

    def can_transition_to(self, target: "MutationState") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _MUTATION_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["MutationState"]:
        """Get list of valid target states."""
        return list(_MUTATION_TRANSITIONS.get(self, set()))

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state."""
        return len(_MUTATION_TRANSITIONS.get(self, set())) == 0


_MUTATION_TRANSITIONS: dict[MutationState, set[MutationState]] = {
    MutationState.UNVALIDATED: {MutationState.IDENTITY_CHECKED, MutationState.INVALID_IDENTITY},
    MutationState.IDENTITY_CHECKED: {
        MutationState.FETCHED,
        MutationState.NOT_FOUND,
        MutationState.PERSISTENCE_ERROR,
    },
    MutationState.FETCHED: {MutationState.MUTATED, MutationState.PERSISTENCE_ERROR},
    MutationState.MUTATED: {MutationState.PERSISTED, MutationState.PERSISTENCE_ERROR},
    MutationState.PERSISTED: set(),
    MutationState.INVALID_IDENTITY: set(),
    MutationState.NOT_FOUND: set(),
    MutationState.PERSISTENCE_ERROR: set(),
}


class EntityMutation(Generic[E]):
    """One run of the identity-check → fetch → mutate → persist flow.

    The flow stages its writes on a ``UnitOfWork`` and commits it, so
    callers can stage dependent rows (e.g. category links) from inside
    the mutate callback and have them land atomically with the entity.

    Example usage:
        async with UnitOfWork(gateway) as uow:
            flow = EntityMutation(uow, EntityKind.PROMOTION)
            promotion = await flow.update(promotion_id, apply_draft)
    """

    def __init__(self, uow: UnitOfWork, kind: EntityKind) -> None:
        """Initialize the flow.

        Args:
            uow: Open unit of work for the current request.
            kind: Kind of entity being mutated.
        """
        self.uow = uow
        self.kind = kind
        self.state = MutationState.UNVALIDATED

    def _transition(self, target: MutationState) -> None:
        if not self.state.can_transition_to(target):
            raise InvalidStateTransitionError(
                self.kind.label,
                self.state.value,
                target.value,
                [state.value for state in self.state.allowed_transitions()],
            )
        self.state = target

    async def _fetch(self, entity_id: UUID | str | None) -> E:
        try:
            identity = require_identity(entity_id, self.kind.label)
        except InvalidIdentityError:
            self._transition(MutationState.INVALID_IDENTITY)
            raise
        self._transition(MutationState.IDENTITY_CHECKED)

        try:
            entity = await self.uow.gateway.find_by_id(self.kind, identity)
        except DomainError:
            self._transition(MutationState.PERSISTENCE_ERROR)
            raise
        except Exception as exc:
            self._transition(MutationState.PERSISTENCE_ERROR)
            raise PersistenceError("find_by_id", exc) from exc
        if entity is None:
            self._transition(MutationState.NOT_FOUND)
            raise EntityNotFoundError(self.kind.label, identity)
        self._transition(MutationState.FETCHED)
        return entity

    async def _persist(self) -> None:
        try:
            await self.uow.commit()
        except DomainError:
            self._transition(MutationState.PERSISTENCE_ERROR)
            raise
        self._transition(MutationState.PERSISTED)

    async def update(
        self,
        entity_id: UUID | str | None,
        apply: Callable[[E], Awaitable[Any]],
    ) -> E:
        """Fetch an entity, mutate it in place and persist it.

        Args:
            entity_id: Identity of the entity to update.
            apply: Coroutine function mutating the fetched entity; it may
                stage additional writes on ``self.uow``.

        Returns:
            The updated entity.

        Raises:
            InvalidIdentityError: If the identity is the sentinel.
            EntityNotFoundError: If no entity has that identity.
            DomainError: Anything raised by ``apply`` or by the commit.
        """
        entity = await self._fetch(entity_id)
        # Staged by reference: the in-place changes made by ``apply`` are what gets written.
        self.uow.stage_update(self.kind, entity)
        try:
            await apply(entity)
        except DomainError:
            self.uow.discard()
            raise
        self._transition(MutationState.MUTATED)
        await self._persist()
        logger.info("Entity updated", kind=self.kind.value, entity_id=str(entity_id))
        return entity

    async def delete(
        self,
        entity_id: UUID | str | None,
        before_remove: Callable[[E], Awaitable[Any]] | None = None,
    ) -> E:
        """Fetch an entity and remove it.

        Args:
            entity_id: Identity of the entity to delete.
            before_remove: Optional coroutine run on the fetched snapshot
                before removal (e.g. to hydrate related rows).

        Returns:
            Snapshot of the removed entity.
        """
        entity = await self._fetch(entity_id)
        if before_remove is not None:
            await before_remove(entity)
        self._transition(MutationState.MUTATED)
        self.uow.stage_remove(self.kind, entity.id)
        await self._persist()
        logger.info("Entity removed", kind=self.kind.value, entity_id=str(entity_id))
        return entity
