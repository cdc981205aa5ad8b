"""SQLAlchemy storage gateway.

Implements ``StorageGateway`` over one ``AsyncSession``. Rows are mapped to
catalog entity dataclasses on the way out, so nothing above this module
ever holds an ORM instance or triggers lazy loading.

Writes are issued as bulk statements and reads always refresh from the
database, so rows cascaded away by the database never linger in the
session's identity map.
"""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, exists, false, func, insert, or_, select, true, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

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
from storecatalog.infrastructure.database import Base
from storecatalog.infrastructure.models import (
    CategoryRow,
    ProductCategoryRow,
    ProductRow,
    PromotionRow,
    SubProductRow,
)

logger = structlog.get_logger()

ROW_MODELS: dict[EntityKind, type[Base]] = {
    EntityKind.PRODUCT: ProductRow,
    EntityKind.SUB_PRODUCT: SubProductRow,
    EntityKind.CATEGORY: CategoryRow,
    EntityKind.PRODUCT_CATEGORY: ProductCategoryRow,
    EntityKind.PROMOTION: PromotionRow,
}


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        raise PersistenceError(operation, str(e)) from e


class SqlAlchemyStorageGateway(StorageGateway):
    """Storage gateway backed by a SQLAlchemy async session.

    Example usage:
        async with session_factory() as session:
            service = ProductService(SqlAlchemyStorageGateway(session))
            result = await service.list_products()
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize gateway.

        Args:
            session: Async database session owned by the caller.
        """
        self._session = session
        self._handle: TransactionHandle | None = None

    # =========================================================================
    # Transactions
    # =========================================================================

    async def begin(self) -> TransactionHandle:
        if self._handle is not None and not self._handle.closed:
            raise PersistenceError("begin", "a transaction is already open")
        with _translate_errors("begin"):
            # Reads outside a unit of work autobegin a transaction; close it first.
            if self._session.in_transaction():
                await self._session.commit()
            transaction = await self._session.begin()
        self._handle = TransactionHandle(transaction)
        return self._handle

    async def commit(self, handle: TransactionHandle) -> None:
        self._check_open(handle, "commit")
        with _translate_errors("commit"):
            await handle.native.commit()
        handle.closed = True

    async def rollback(self, handle: TransactionHandle) -> None:
        self._check_open(handle, "rollback")
        handle.closed = True
        with _translate_errors("rollback"):
            await handle.native.rollback()

    def _check_open(self, handle: TransactionHandle, operation: str) -> None:
        if handle.closed or handle is not self._handle:
            raise PersistenceError(operation, "transaction is not open")

    # =========================================================================
    # Writes
    # =========================================================================

    async def insert(self, kind: EntityKind, record: Any) -> Identity:
        values = _row_values(kind, record)
        if kind is not EntityKind.PRODUCT_CATEGORY and is_empty_identity(values["id"]):
            values["id"] = new_identity()
        row_model = ROW_MODELS[kind]
        with _translate_errors("insert"):
            await self._session.execute(insert(row_model).values(**values))
        if kind is EntityKind.PRODUCT_CATEGORY:
            return (values["product_id"], values["category_id"])
        return values["id"]

    async def update(self, kind: EntityKind, record: Any) -> None:
        row_model = ROW_MODELS[kind]
        primary_key = {column.key for column in row_model.__table__.primary_key.columns}
        values = {key: value for key, value in _row_values(kind, record).items() if key not in primary_key}
        identity = record_identity(kind, record)
        statement = (
            update(row_model)
            .where(_identity_clause(kind, identity))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with _translate_errors("update"):
            result = await self._session.execute(statement)
        if result.rowcount == 0:
            raise PersistenceError("update", f"{kind.label} {identity} does not exist")

    async def remove(self, kind: EntityKind, identity: Identity) -> None:
        statement = (
            delete(ROW_MODELS[kind])
            .where(_identity_clause(kind, identity))
            .execution_options(synchronize_session=False)
        )
        with _translate_errors("remove"):
            result = await self._session.execute(statement)
        if result.rowcount == 0:
            raise PersistenceError("remove", f"{kind.label} {identity} does not exist")

    # =========================================================================
    # Reads
    # =========================================================================

    async def find_by_id(self, kind: EntityKind, identity: Identity) -> Any | None:
        statement = select(ROW_MODELS[kind]).where(_identity_clause(kind, identity))
        rows = await self._fetch(statement)
        return _to_entity(kind, rows[0]) if rows else None

    async def query(
        self,
        kind: EntityKind,
        predicate: Predicate | None = None,
        ordering: Sequence[OrderBy] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Any]:
        row_model = ROW_MODELS[kind]
        statement = select(row_model)
        if predicate is not None:
            statement = statement.where(compile_predicate(kind, predicate))
        for order in ordering:
            column = _column(row_model, order.field)
            statement = statement.order_by(column.desc() if order.descending else column.asc())
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return [_to_entity(kind, row) for row in await self._fetch(statement)]

    async def count(self, kind: EntityKind, predicate: Predicate | None = None) -> int:
        statement = select(func.count()).select_from(ROW_MODELS[kind])
        if predicate is not None:
            statement = statement.where(compile_predicate(kind, predicate))
        with _translate_errors("count"):
            result = await self._session.execute(statement)
        return result.scalar_one()

    async def _fetch(self, statement: Any) -> list[Any]:
        with _translate_errors("query"):
            result = await self._session.scalars(statement.execution_options(populate_existing=True))
            return list(result.all())


# =============================================================================
# Predicate compilation
# =============================================================================


def compile_predicate(kind: EntityKind, predicate: Predicate) -> ColumnElement[bool]:
    """Compile a predicate tree into a SQLAlchemy boolean expression.

    Args:
        kind: Record kind the predicate applies to.
        predicate: Predicate tree.

    Returns:
        Boolean expression with every value bound as a parameter.

    Raises:
        PersistenceError: If the tree names an unknown field or node.
    """
    row_model = ROW_MODELS[kind]
    match predicate:
        case AllOf(predicates=children):
            return and_(true(), *(compile_predicate(kind, child) for child in children))
        case AnyOf(predicates=children):
            return or_(false(), *(compile_predicate(kind, child) for child in children))
        case Eq(field=name, value=value):
            return _column(row_model, name) == value
        case In(field=name, values=values):
            if not values:
                return false()
            return _column(row_model, name).in_(values)
        case Between(field=name, low=low, high=high):
            return _column(row_model, name).between(low, high)
        case Contains(field=name, text=text):
            return _column(row_model, name).icontains(text, autoescape=True)
        case HasCategory(category_ids=category_ids):
            return _has_category(kind, category_ids)
    raise PersistenceError("query", f"unsupported predicate {predicate!r}")


def _has_category(kind: EntityKind, category_ids: Sequence[str]) -> ColumnElement[bool]:
    if kind is EntityKind.PRODUCT:
        owner = ProductRow.id
    elif kind is EntityKind.SUB_PRODUCT:
        owner = SubProductRow.product_id
    else:
        raise PersistenceError("query", f"category filter is not defined for {kind.label}")

    identities = []
    for value in category_ids:
        try:
            identities.append(UUID(value))
        except ValueError:
            # Not a UUID, so no stored link can carry it.
            continue
    if not identities:
        return false()
    return exists().where(
        ProductCategoryRow.product_id == owner,
        ProductCategoryRow.category_id.in_(identities),
    )


def _column(row_model: type[Base], name: str) -> Any:
    if name not in row_model.__table__.columns:
        raise PersistenceError("query", f"unknown field {row_model.__tablename__}.{name}")
    return getattr(row_model, name)


def _identity_clause(kind: EntityKind, identity: Identity) -> ColumnElement[bool]:
    if kind is EntityKind.PRODUCT_CATEGORY:
        product_id, category_id = identity
        return and_(
            ProductCategoryRow.product_id == product_id,
            ProductCategoryRow.category_id == category_id,
        )
    return ROW_MODELS[kind].id == identity


# =============================================================================
# Row mapping
# =============================================================================


def _row_values(kind: EntityKind, record: Any) -> dict[str, Any]:
    values = {}
    for column in ROW_MODELS[kind].__table__.columns:
        value = getattr(record, column.key)
        if isinstance(value, datetime) and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        elif isinstance(value, list):
            value = list(value)
        values[column.key] = value
    return values


def _to_entity(kind: EntityKind, row: Any) -> Any:
    values = {}
    for column in row.__table__.columns:
        value = getattr(row, column.key)
        if isinstance(value, datetime) and value.tzinfo is None:
            # SQLite drops the offset; every stored timestamp is UTC.
            value = value.replace(tzinfo=timezone.utc)
        elif isinstance(value, list):
            value = list(value)
        values[column.key] = value
    return kind.entity_class(**values)
