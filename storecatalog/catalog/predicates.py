"""Predicate tree for storage queries.

Predicates are immutable data. They never carry query text: each storage
gateway interprets the tree structurally, either by evaluating it against
records in memory or by compiling it to SQLAlchemy expressions. Values
supplied by callers therefore only ever reach storage as bound parameters.

Example usage:
    predicate = AllOf((
        In("color", ("red", "blue")),
        Between("price", Decimal("10"), Decimal("20")),
    ))
    variants = await gateway.query(EntityKind.SUB_PRODUCT, predicate)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


class Predicate:
    """Base class for predicate tree nodes."""


@dataclass(frozen=True)
class Eq(Predicate):
    """Field equals a value."""

    field: str
    value: Any


@dataclass(frozen=True)
class In(Predicate):
    """Field is a member of a set of values.

    An empty ``values`` tuple matches nothing.
    """

    field: str
    values: tuple[Any, ...]

    @classmethod
    def of(cls, field: str, values: Iterable[Any]) -> "In":
        """Build from any iterable, keeping first-seen order without duplicates."""
        return cls(field, tuple(dict.fromkeys(values)))


@dataclass(frozen=True)
class Between(Predicate):
    """Field lies within ``[low, high]``, both bounds inclusive."""

    field: str
    low: Any
    high: Any


@dataclass(frozen=True)
class Contains(Predicate):
    """String field contains a substring, ignoring case."""

    field: str
    text: str


@dataclass(frozen=True)
class HasCategory(Predicate):
    """Owning product is linked to at least one of the given categories.

    Category identifiers are compared in their canonical string form.
    Applies to products (via their own links) and to sub-products (via
    the links of their owning product). An empty set matches nothing.
    """

    category_ids: tuple[str, ...]


@dataclass(frozen=True)
class AllOf(Predicate):
    """Conjunction. An empty conjunction matches everything."""

    predicates: tuple[Predicate, ...] = ()


@dataclass(frozen=True)
class AnyOf(Predicate):
    """Disjunction. An empty disjunction matches nothing."""

    predicates: tuple[Predicate, ...] = ()


@dataclass(frozen=True)
class OrderBy:
    """Sort key for query results."""

    field: str
    descending: bool = False


NEWEST_FIRST = (OrderBy("created_at", descending=True), OrderBy("id", descending=True))
