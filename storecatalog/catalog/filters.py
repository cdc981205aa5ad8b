"""Filter composer.

Translates a sparse ``FilterRequest`` into a conjunctive predicate over
variants joined to their product and that product's category links. Each
field that is present appends one predicate; absent or empty fields add
nothing, so they never restrict the result.
"""

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from storecatalog.catalog.predicates import AllOf, Between, Eq, HasCategory, In, Predicate


class FilterRequest(BaseModel):
    """Sparse product filter.

    Every field is optional; ``None`` and empty values mean "no restriction".
    """

    colors: list[str] | None = Field(default=None, description="Allowed variant colors")
    size: str | None = Field(default=None, description="Exact variant size")
    price: list[Decimal] | None = Field(
        default=None,
        description="Inclusive [min, max] variant price range; ignored unless exactly two values",
    )
    categories: list[str] | None = Field(
        default=None,
        description="Category ids; products linked to any of them match",
    )


def canonical_category_id(value: str | UUID) -> str:
    """Canonical string form of a category id.

    UUID strings are normalised (lowercase, hyphenated); anything else is
    kept as given and will simply never match a stored link.
    """
    try:
        return str(UUID(str(value)))
    except ValueError:
        return str(value)


class FilterComposer:
    """Builder accumulating a conjunction of variant predicates.

    Example usage:
        predicate = (
            FilterComposer()
            .with_colors(["red"])
            .with_price_range([Decimal("10"), Decimal("20")])
            .build()
        )
    """

    def __init__(self) -> None:
        self._predicates: list[Predicate] = []

    @classmethod
    def from_request(cls, request: FilterRequest) -> "FilterComposer":
        """Compose every predicate present in a request.

        Args:
            request: Sparse filter request.

        Returns:
            Composer holding the request's predicates.
        """
        return (
            cls()
            .with_colors(request.colors)
            .with_size(request.size)
            .with_price_range(request.price)
            .with_categories(request.categories)
        )

    def with_colors(self, colors: Iterable[str] | None) -> "FilterComposer":
        """Keep variants whose color is one of ``colors``."""
        if colors:
            self._predicates.append(In.of("color", colors))
        return self

    def with_size(self, size: str | None) -> "FilterComposer":
        """Keep variants with exactly this size."""
        if size:
            self._predicates.append(Eq("size", size))
        return self

    def with_price_range(self, price: list[Decimal] | None) -> "FilterComposer":
        """Keep variants priced within ``[min, max]`` inclusive."""
        if price is not None and len(price) == 2:
            low, high = price
            self._predicates.append(Between("price", low, high))
        return self

    def with_categories(self, categories: Iterable[str] | None) -> "FilterComposer":
        """Keep variants whose product links to any of ``categories``."""
        if categories:
            ids = tuple(dict.fromkeys(canonical_category_id(value) for value in categories))
            self._predicates.append(HasCategory(ids))
        return self

    @property
    def predicates(self) -> list[Predicate]:
        """Predicates accumulated so far, in the order they were added."""
        return list(self._predicates)

    def build(self) -> AllOf:
        """Build the conjunction; empty when no field restricts."""
        return AllOf(tuple(self._predicates))
