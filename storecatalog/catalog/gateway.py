"""Storage gateway contract.

The catalog core never talks to a database directly. It consumes the
abstract ``StorageGateway`` below, which provides atomic multi-row
persistence, predicate queries and explicit transactions. One gateway
instance represents one logical session and must not be shared between
concurrent requests.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import Any
from uuid import UUID

from storecatalog.catalog.entities import Category, Product, ProductCategory, SubProduct
from storecatalog.catalog.predicates import OrderBy, Predicate
from storecatalog.promotions.entities import Promotion

Identity = UUID | tuple[UUID, UUID]


class EntityKind(str, Enum):
    """Kinds of records the gateway stores."""

    PRODUCT = "product"
    SUB_PRODUCT = "sub_product"
    CATEGORY = "category"
    PRODUCT_CATEGORY = "product_category"
    PROMOTION = "promotion"

    @property
    def entity_class(self) -> type:
        """Entity dataclass stored under this kind."""
        return _ENTITY_CLASSES[self]

    @property
    def label(self) -> str:
        """Human-readable entity name used in messages."""
        return _LABELS[self]


_ENTITY_CLASSES: dict[EntityKind, type] = {
    EntityKind.PRODUCT: Product,
    EntityKind.SUB_PRODUCT: SubProduct,
    EntityKind.CATEGORY: Category,
    EntityKind.PRODUCT_CATEGORY: ProductCategory,
    EntityKind.PROMOTION: Promotion,
}

_LABELS: dict[EntityKind, str] = {
    EntityKind.PRODUCT: "Product",
    EntityKind.SUB_PRODUCT: "SubProduct",
    EntityKind.CATEGORY: "Category",
    EntityKind.PRODUCT_CATEGORY: "ProductCategory",
    EntityKind.PROMOTION: "Promotion",
}


def record_identity(kind: EntityKind, record: Any) -> Identity:
    """Get the identity of a record.

    Args:
        kind: Record kind.
        record: Entity instance.

    Returns:
        The record's UUID, or ``(product_id, category_id)`` for links.
    """
    if kind is EntityKind.PRODUCT_CATEGORY:
        return record.key
    return record.id


class TransactionHandle:
    """Opaque handle for an open gateway transaction."""

    def __init__(self, native: Any = None) -> None:
        self.native = native
        self.closed = False


class StorageGateway(ABC):
    """Abstract storage capability consumed by the catalog services.

    Implementations must:
    - generate an identity on ``insert`` when the record's id is empty;
    - remove a product's links and variants when the product is removed;
    - undo every write made since ``begin`` when ``rollback`` is called.
    """

    @abstractmethod
    async def begin(self) -> TransactionHandle:
        """Open an atomic unit."""

    @abstractmethod
    async def commit(self, handle: TransactionHandle) -> None:
        """Make every write since ``begin`` durable."""

    @abstractmethod
    async def rollback(self, handle: TransactionHandle) -> None:
        """Undo every write since ``begin``."""

    @abstractmethod
    async def insert(self, kind: EntityKind, record: Any) -> Identity:
        """Persist a new record and return its identity."""

    @abstractmethod
    async def update(self, kind: EntityKind, record: Any) -> None:
        """Overwrite the stored scalar fields of an existing record."""

    @abstractmethod
    async def remove(self, kind: EntityKind, identity: Identity) -> None:
        """Delete a record by identity."""

    @abstractmethod
    async def find_by_id(self, kind: EntityKind, identity: Identity) -> Any | None:
        """Fetch a record by identity, or None when absent."""

    @abstractmethod
    async def query(
        self,
        kind: EntityKind,
        predicate: Predicate | None = None,
        ordering: Sequence[OrderBy] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Any]:
        """Fetch records matching a predicate, ordered and sliced."""

    @abstractmethod
    async def count(self, kind: EntityKind, predicate: Predicate | None = None) -> int:
        """Count records matching a predicate."""
