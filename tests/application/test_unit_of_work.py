"""Tests for the unit of work."""

from uuid import uuid4

import pytest

from storecatalog.application.results import ResultStatus
from storecatalog.application.unit_of_work import UnitOfWork
from storecatalog.catalog.entities import Category, Product, ProductCategory
from storecatalog.catalog.gateway import EntityKind
from storecatalog.catalog.memory import InMemoryStorageGateway
from storecatalog.catalog.products import ProductService
from storecatalog.domain.exceptions import EntityNotFoundError, PersistenceError
from storecatalog.domain.identity import EMPTY_ID


class FailingGateway(InMemoryStorageGateway):
    """In-memory gateway whose inserts fail for one kind."""

    def __init__(self, failing_kind: EntityKind) -> None:
        super().__init__()
        self.failing_kind = failing_kind

    async def insert(self, kind, record):
        if kind is self.failing_kind:
            raise RuntimeError("disk full")
        return await super().insert(kind, record)


class TestStaging:
    """Tests for staging writes."""

    @pytest.mark.asyncio
    async def test_nothing_written_before_commit(self, gateway) -> None:
        """Staged inserts stay local until commit."""
        async with UnitOfWork(gateway) as uow:
            uow.stage_insert(EntityKind.CATEGORY, Category(title="Shoes"))

            assert len(uow.staged) == 1
            assert await gateway.count(EntityKind.CATEGORY) == 0

            await uow.commit()

        assert await gateway.count(EntityKind.CATEGORY) == 1
        assert uow.committed is True
        assert uow.staged == []

    @pytest.mark.asyncio
    async def test_stage_insert_assigns_identity(self, gateway) -> None:
        """Dependent rows can reference an identity assigned at staging time."""
        async with UnitOfWork(gateway) as uow:
            product = Product(title="Tee")
            product_id = uow.stage_insert(EntityKind.PRODUCT, product)
            category_id = uow.stage_insert(EntityKind.CATEGORY, Category(title="Shirts"))
            uow.stage_insert(EntityKind.PRODUCT_CATEGORY, ProductCategory(product_id, category_id))
            await uow.commit()

        assert product_id != EMPTY_ID
        assert product.id == product_id
        links = await gateway.query(EntityKind.PRODUCT_CATEGORY)
        assert links[0].key == (product_id, category_id)

    @pytest.mark.asyncio
    async def test_exit_without_commit_discards(self, gateway) -> None:
        """Leaving the block without commit writes nothing."""
        async with UnitOfWork(gateway) as uow:
            uow.stage_insert(EntityKind.CATEGORY, Category(title="Shoes"))

        assert await gateway.count(EntityKind.CATEGORY) == 0
        assert uow.committed is False

    @pytest.mark.asyncio
    async def test_exception_inside_block_discards(self, gateway) -> None:
        """An error raised while staging leaves storage untouched."""
        with pytest.raises(EntityNotFoundError):
            async with UnitOfWork(gateway) as uow:
                uow.stage_insert(EntityKind.CATEGORY, Category(title="Shoes"))
                raise EntityNotFoundError("Category", uuid4())

        assert await gateway.count(EntityKind.CATEGORY) == 0
        assert uow.staged == []

    @pytest.mark.asyncio
    async def test_gateway_usable_after_rollback(self, gateway) -> None:
        """A rolled-back unit releases the transaction for the next one."""
        async with UnitOfWork(gateway):
            pass

        async with UnitOfWork(gateway) as uow:
            uow.stage_insert(EntityKind.CATEGORY, Category(title="Shoes"))
            await uow.commit()

        assert await gateway.count(EntityKind.CATEGORY) == 1


class TestCommitFailure:
    """Tests for failures while applying staged writes."""

    @pytest.mark.asyncio
    async def test_partial_apply_is_rolled_back(self) -> None:
        """A failing write undoes the writes applied before it."""
        gateway = FailingGateway(EntityKind.PRODUCT_CATEGORY)

        with pytest.raises(PersistenceError) as exc_info:
            async with UnitOfWork(gateway) as uow:
                product_id = uow.stage_insert(EntityKind.PRODUCT, Product(title="Tee"))
                uow.stage_insert(EntityKind.PRODUCT_CATEGORY, ProductCategory(product_id, uuid4()))
                await uow.commit()

        assert "disk full" in exc_info.value.message
        assert await gateway.count(EntityKind.PRODUCT) == 0
        assert uow.committed is False

    @pytest.mark.asyncio
    async def test_commit_outside_block_rejected(self, gateway) -> None:
        """Committing a unit that was never entered fails."""
        with pytest.raises(PersistenceError):
            await UnitOfWork(gateway).commit()


class TestServiceStorageFaults:
    """Tests for storage faults surfacing through services."""

    @pytest.mark.asyncio
    async def test_create_product_storage_fault(self, messages, settings) -> None:
        """Unexpected storage errors become persistence failures and nothing persists."""
        gateway = FailingGateway(EntityKind.PRODUCT_CATEGORY)
        category_id = await gateway.insert(EntityKind.CATEGORY, Category(title="Shirts"))
        service = ProductService(gateway, messages=messages, settings=settings)

        result = await service.create_product({"title": "Tee", "category_ids": [category_id]})

        assert result.success is False
        assert result.status is ResultStatus.PERSISTENCE_ERROR
        assert result.message.startswith("Failed to create product.")
        assert await gateway.count(EntityKind.PRODUCT) == 0
