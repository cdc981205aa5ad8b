"""Tests for the shared mutation flow."""

from uuid import uuid4

import pytest

from storecatalog.application.mutations import EntityMutation, MutationState
from storecatalog.application.unit_of_work import UnitOfWork
from storecatalog.catalog.entities import Category
from storecatalog.catalog.gateway import EntityKind
from storecatalog.domain.exceptions import (
    CatalogValidationError,
    EntityNotFoundError,
    InvalidIdentityError,
    InvalidStateTransitionError,
)
from storecatalog.domain.identity import EMPTY_ID


class TestMutationState:
    """Tests for the MutationState state machine."""

    def test_forward_path(self) -> None:
        """Each forward step is allowed."""
        path = [
            MutationState.UNVALIDATED,
            MutationState.IDENTITY_CHECKED,
            MutationState.FETCHED,
            MutationState.MUTATED,
            MutationState.PERSISTED,
        ]
        for current, target in zip(path, path[1:]):
            assert current.can_transition_to(target)

    def test_cannot_skip_fetch(self) -> None:
        """IDENTITY_CHECKED cannot jump to MUTATED."""
        assert not MutationState.IDENTITY_CHECKED.can_transition_to(MutationState.MUTATED)

    def test_unvalidated_cannot_be_not_found(self) -> None:
        """Lookups only happen after the identity check."""
        assert not MutationState.UNVALIDATED.can_transition_to(MutationState.NOT_FOUND)

    @pytest.mark.parametrize(
        "state",
        [
            MutationState.PERSISTED,
            MutationState.INVALID_IDENTITY,
            MutationState.NOT_FOUND,
            MutationState.PERSISTENCE_ERROR,
        ],
    )
    def test_outcomes_are_terminal(self, state) -> None:
        """Every outcome ends the flow."""
        assert state.is_terminal()
        assert state.allowed_transitions() == []

    def test_active_states_can_fail_on_storage(self) -> None:
        """Storage faults are reachable from every state after the identity check."""
        for state in (MutationState.IDENTITY_CHECKED, MutationState.FETCHED, MutationState.MUTATED):
            assert state.can_transition_to(MutationState.PERSISTENCE_ERROR)


class TestEntityMutation:
    """Tests for EntityMutation runs."""

    @pytest.mark.asyncio
    async def test_update_reaches_persisted(self, gateway) -> None:
        """A successful update ends in PERSISTED and is stored."""
        category_id = await gateway.insert(EntityKind.CATEGORY, Category(title="Shoes"))

        async def rename(category: Category) -> None:
            category.title = "Boots"

        async with UnitOfWork(gateway) as uow:
            flow = EntityMutation[Category](uow, EntityKind.CATEGORY)
            updated = await flow.update(category_id, rename)

        assert flow.state is MutationState.PERSISTED
        assert updated.title == "Boots"
        assert (await gateway.find_by_id(EntityKind.CATEGORY, category_id)).title == "Boots"

    @pytest.mark.asyncio
    async def test_empty_identity(self, gateway) -> None:
        """The sentinel ends the flow in INVALID_IDENTITY."""
        async with UnitOfWork(gateway) as uow:
            flow = EntityMutation[Category](uow, EntityKind.CATEGORY)
            with pytest.raises(InvalidIdentityError):
                await flow.delete(EMPTY_ID)

        assert flow.state is MutationState.INVALID_IDENTITY

    @pytest.mark.asyncio
    async def test_not_found(self, gateway) -> None:
        """An unknown identity ends the flow in NOT_FOUND."""
        async with UnitOfWork(gateway) as uow:
            flow = EntityMutation[Category](uow, EntityKind.CATEGORY)
            with pytest.raises(EntityNotFoundError):
                await flow.delete(uuid4())

        assert flow.state is MutationState.NOT_FOUND

    @pytest.mark.asyncio
    async def test_failing_apply_discards_staged_update(self, gateway) -> None:
        """A domain error from the mutate step leaves storage unchanged."""
        category_id = await gateway.insert(EntityKind.CATEGORY, Category(title="Shoes"))

        async def reject(category: Category) -> None:
            category.title = "Half-done"
            raise CatalogValidationError("title", category.title, "rejected")

        async with UnitOfWork(gateway) as uow:
            flow = EntityMutation[Category](uow, EntityKind.CATEGORY)
            with pytest.raises(CatalogValidationError):
                await flow.update(category_id, reject)
            assert uow.staged == []

        assert flow.state is MutationState.FETCHED
        assert (await gateway.find_by_id(EntityKind.CATEGORY, category_id)).title == "Shoes"

    @pytest.mark.asyncio
    async def test_flow_runs_once(self, gateway) -> None:
        """Reusing a finished flow is an invalid transition."""
        first = await gateway.insert(EntityKind.CATEGORY, Category(title="A"))
        second = await gateway.insert(EntityKind.CATEGORY, Category(title="B"))

        async with UnitOfWork(gateway) as uow:
            flow = EntityMutation[Category](uow, EntityKind.CATEGORY)
            await flow.delete(first)
            with pytest.raises(InvalidStateTransitionError):
                await flow.delete(second)
