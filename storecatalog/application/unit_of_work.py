"""Unit of work for atomic multi-row writes.

Writes are staged as a list of operations and only applied to the gateway
when ``commit`` is called, inside the transaction opened on entry. Reads
made while staging (existence checks, fetches) run in that same
transaction. If anything fails before or during commit, the staged list is
discarded and the transaction rolled back, so a partially applied write is
never visible.

Example usage:
    async with UnitOfWork(gateway) as uow:
        product_id = uow.stage_insert(EntityKind.PRODUCT, product)
        uow.stage_insert(EntityKind.PRODUCT_CATEGORY, ProductCategory(product_id, category_id))
        await uow.commit()
"""

from dataclasses import dataclass
from types import TracebackType
from typing import Any

import structlog

from storecatalog.catalog.gateway import (
    EntityKind,
    Identity,
    StorageGateway,
    TransactionHandle,
    record_identity,
)
from storecatalog.domain.exceptions import DomainError, PersistenceError
from storecatalog.domain.identity import is_empty_identity, new_identity

logger = structlog.get_logger()


@dataclass
class StagedOperation:
    """A write waiting for commit."""

    action: str
    kind: EntityKind
    record: Any = None
    identity: Identity | None = None

    async def apply(self, gateway: StorageGateway) -> None:
        """Apply the write to the gateway."""
        if self.action == "insert":
            await gateway.insert(self.kind, self.record)
        elif self.action == "update":
            await gateway.update(self.kind, self.record)
        elif self.action == "remove":
            await gateway.remove(self.kind, self.identity)
        else:
            raise PersistenceError(self.action, f"unknown staged action for {self.kind.label}")


class UnitOfWork:
    """Atomic unit spanning reads, staged writes and a single commit."""

    def __init__(self, gateway: StorageGateway) -> None:
        """Initialize unit of work.

        Args:
            gateway: Storage gateway for this request.
        """
        self.gateway = gateway
        self._handle: TransactionHandle | None = None
        self._staged: list[StagedOperation] = []
        self.committed = False

    @property
    def staged(self) -> list[StagedOperation]:
        """Operations waiting for commit."""
        return list(self._staged)

    async def __aenter__(self) -> "UnitOfWork":
        try:
            self._handle = await self.gateway.begin()
        except DomainError:
            raise
        except Exception as exc:
            raise PersistenceError("begin", exc) from exc
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.committed:
            await self.rollback()

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def stage_insert(self, kind: EntityKind, record: Any) -> Identity:
        """Stage a new record.

        Assigns an identity up front so that dependent rows staged later
        in the same unit can reference it.

        Args:
            kind: Record kind.
            record: Entity to insert.

        Returns:
            Identity the record will be stored under.
        """
        if kind is not EntityKind.PRODUCT_CATEGORY and is_empty_identity(record.id):
            record.id = new_identity()
        self._staged.append(StagedOperation("insert", kind, record=record))
        return record_identity(kind, record)

    def stage_update(self, kind: EntityKind, record: Any) -> None:
        """Stage an overwrite of an existing record."""
        self._staged.append(StagedOperation("update", kind, record=record))

    def stage_remove(self, kind: EntityKind, identity: Identity) -> None:
        """Stage a removal by identity."""
        self._staged.append(StagedOperation("remove", kind, identity=identity))

    def discard(self) -> None:
        """Drop every staged operation without touching storage."""
        self._staged.clear()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        """Apply staged operations and commit the transaction.

        Raises:
            PersistenceError: If any staged write or the commit fails; the
                transaction is rolled back before raising.
        """
        if self._handle is None:
            raise PersistenceError("commit", "unit of work was not entered")
        try:
            for operation in self._staged:
                await operation.apply(self.gateway)
            await self.gateway.commit(self._handle)
        except Exception as exc:
            logger.warning(
                "Unit of work commit failed",
                staged=len(self._staged),
                error=str(exc),
            )
            await self.rollback()
            if isinstance(exc, DomainError):
                raise
            raise PersistenceError("commit", exc) from exc
        self.committed = True
        self._staged.clear()

    async def rollback(self) -> None:
        """Discard staged operations and roll back the open transaction."""
        self.discard()
        handle, self._handle = self._handle, None
        if handle is None or handle.closed:
            return
        try:
            await self.gateway.rollback(handle)
        except Exception:
            logger.exception("Unit of work rollback failed")
