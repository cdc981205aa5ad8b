"""In-memory storage gateway.

Dict-backed implementation of ``StorageGateway`` used for tests and local
development. Records are copied on the way in and on the way out, so
callers can never mutate stored state without going through ``update``.
Transactions snapshot every table on ``begin`` and restore the snapshot on
``rollback``.
"""

import copy
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog

from storecatalog.catalog.gateway import (
    EntityKind,
    Identity,
    StorageGateway,
    TransactionHandle,
    record_identity,
)
from storecatalog.catalog.predicates import (
    AllOf,
    AnyOf,
    Between,
    Contains,
    Eq,
    HasCategory,
    In,
    OrderBy,
    Predicate,
)
from storecatalog.domain.exceptions import PersistenceError
from storecatalog.domain.identity import is_empty_identity, new_identity

logger = structlog.get_logger()


@dataclass(frozen=True)
class OperationRecord:
    """One write performed against the gateway."""

    action: str
    kind: EntityKind
    identity: Identity


class InMemoryStorageGateway(StorageGateway):
    """In-memory storage gateway.

    Example usage:
        gateway = InMemoryStorageGateway()
        category_id = await gateway.insert(EntityKind.CATEGORY, Category(title="Shoes"))
        assert await gateway.find_by_id(EntityKind.CATEGORY, category_id)
    """

    def __init__(self) -> None:
        self._tables: dict[EntityKind, dict[Identity, Any]] = {kind: {} for kind in EntityKind}
        self._snapshot: dict[EntityKind, dict[Identity, Any]] | None = None
        self.operations: list[OperationRecord] = []

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def begin(self) -> TransactionHandle:
        if self._snapshot is not None:
            raise PersistenceError("begin", "a transaction is already open")
        self._snapshot = copy.deepcopy(self._tables)
        return TransactionHandle()

    async def commit(self, handle: TransactionHandle) -> None:
        self._close(handle, "commit")
        self._snapshot = None

    async def rollback(self, handle: TransactionHandle) -> None:
        self._close(handle, "rollback")
        if self._snapshot is not None:
            self._tables = self._snapshot
        self._snapshot = None

    def _close(self, handle: TransactionHandle, operation: str) -> None:
        if handle.closed or self._snapshot is None:
            raise PersistenceError(operation, "transaction is not open")
        handle.closed = True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, kind: EntityKind, record: Any) -> Identity:
        record = copy.deepcopy(record)
        if kind is not EntityKind.PRODUCT_CATEGORY and is_empty_identity(record.id):
            record.id = new_identity()
        if kind is EntityKind.PRODUCT:
            record.product_categories = []
            record.sub_products = []
        identity = record_identity(kind, record)
        table = self._tables[kind]
        if identity in table:
            raise PersistenceError("insert", f"duplicate {kind.label} {identity}")
        table[identity] = record
        self.operations.append(OperationRecord("insert", kind, identity))
        return identity

    async def update(self, kind: EntityKind, record: Any) -> None:
        identity = record_identity(kind, record)
        table = self._tables[kind]
        if identity not in table:
            raise PersistenceError("update", f"{kind.label} {identity} does not exist")
        record = copy.deepcopy(record)
        if kind is EntityKind.PRODUCT:
            record.product_categories = []
            record.sub_products = []
        table[identity] = record
        self.operations.append(OperationRecord("update", kind, identity))

    async def remove(self, kind: EntityKind, identity: Identity) -> None:
        table = self._tables[kind]
        if identity not in table:
            raise PersistenceError("remove", f"{kind.label} {identity} does not exist")
        del table[identity]
        self.operations.append(OperationRecord("remove", kind, identity))
        if kind is EntityKind.PRODUCT:
            self._cascade_product(identity)

    def _cascade_product(self, product_id: Identity) -> None:
        links = self._tables[EntityKind.PRODUCT_CATEGORY]
        for key in [key for key, link in links.items() if link.product_id == product_id]:
            del links[key]
        variants = self._tables[EntityKind.SUB_PRODUCT]
        for key in [key for key, variant in variants.items() if variant.product_id == product_id]:
            del variants[key]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_by_id(self, kind: EntityKind, identity: Identity) -> Any | None:
        record = self._tables[kind].get(identity)
        return copy.deepcopy(record) if record is not None else None

    async def query(
        self,
        kind: EntityKind,
        predicate: Predicate | None = None,
        ordering: Sequence[OrderBy] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Any]:
        records = self._matching(kind, predicate)
        # Stable sorts applied from the least significant key keep multi-key order.
        for order in reversed(ordering):
            records.sort(key=lambda record: _sort_key(getattr(record, order.field)), reverse=order.descending)
        end = None if limit is None else offset + limit
        return [copy.deepcopy(record) for record in records[offset:end]]

    async def count(self, kind: EntityKind, predicate: Predicate | None = None) -> int:
        return len(self._matching(kind, predicate))

    def _matching(self, kind: EntityKind, predicate: Predicate | None) -> list[Any]:
        records = list(self._tables[kind].values())
        if predicate is None:
            return records
        return [record for record in records if self._evaluate(kind, predicate, record)]

    def _evaluate(self, kind: EntityKind, predicate: Predicate, record: Any) -> bool:
        match predicate:
            case AllOf(predicates=children):
                return all(self._evaluate(kind, child, record) for child in children)
            case AnyOf(predicates=children):
                return any(self._evaluate(kind, child, record) for child in children)
            case Eq(field=name, value=value):
                return getattr(record, name) == value
            case In(field=name, values=values):
                return getattr(record, name) in values
            case Between(field=name, low=low, high=high):
                value = getattr(record, name)
                return value is not None and low <= value <= high
            case Contains(field=name, text=text):
                value = getattr(record, name)
                return value is not None and text.casefold() in value.casefold()
            case HasCategory(category_ids=category_ids):
                return self._has_category(kind, record, set(category_ids))
        raise PersistenceError("query", f"unsupported predicate {predicate!r}")

    def _has_category(self, kind: EntityKind, record: Any, category_ids: set[str]) -> bool:
        if kind is EntityKind.PRODUCT:
            product_id = record.id
        elif kind is EntityKind.SUB_PRODUCT:
            product_id = record.product_id
        else:
            raise PersistenceError("query", f"category filter is not defined for {kind.label}")
        return any(
            link.product_id == product_id and str(link.category_id) in category_ids
            for link in self._tables[EntityKind.PRODUCT_CATEGORY].values()
        )


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts first ascending, like SQL NULLS FIRST.
    if isinstance(value, UUID):
        value = value.int
    return (value is not None, value)
