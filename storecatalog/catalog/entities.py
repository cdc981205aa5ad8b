"""Catalog entities.

Plain dataclasses for products, their variants (sub-products), categories
and the product/category join. Storage gateways persist only the scalar
fields; the ``product_categories`` and ``sub_products`` collections on
``Product`` are hydrated by the services for reads.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from storecatalog.domain.identity import EMPTY_ID


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


@dataclass
class Category:
    """Product category.

    Attributes:
        id: Category identifier.
        title: Display title.
    """

    id: UUID = EMPTY_ID
    title: str = ""


@dataclass
class ProductCategory:
    """Association row between a product and a category.

    Identified by the ``(product_id, category_id)`` pair; has no lifecycle
    of its own.

    Attributes:
        product_id: Owning product.
        category_id: Linked category.
        category: Linked category, populated on reads only.
    """

    product_id: UUID
    category_id: UUID
    category: Category | None = field(default=None, compare=False)

    @property
    def key(self) -> tuple[UUID, UUID]:
        """Composite identity of the link."""
        return (self.product_id, self.category_id)


@dataclass
class SubProduct:
    """Purchasable size/color/price variant of a product.

    Attributes:
        id: Variant identifier.
        product_id: Owning product (never empty once persisted).
        size: Size label.
        color: Color label.
        price: Unit price, never negative.
        quantity: Units in stock, never negative.
        images: Image references.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: UUID = EMPTY_ID
    product_id: UUID = EMPTY_ID
    size: str = ""
    color: str = ""
    price: Decimal = Decimal("0")
    quantity: int = 0
    images: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Product:
    """Catalog product.

    A product owns its variants and category links: removing the
    product removes both.

    Attributes:
        id: Product identifier.
        title: Product title.
        slug: URL slug (intended unique, not enforced).
        content: Long-form content.
        description: Short description.
        images: Image references.
        supplier: Supplier reference.
        expiry_date: Optional expiry timestamp.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
        product_categories: Category links, populated on reads.
        sub_products: Variants, populated on reads.
    """

    id: UUID = EMPTY_ID
    title: str = ""
    slug: str = ""
    content: str | None = None
    description: str | None = None
    images: list[str] = field(default_factory=list)
    supplier: str | None = None
    expiry_date: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None
    product_categories: list[ProductCategory] = field(default_factory=list, compare=False)
    sub_products: list[SubProduct] = field(default_factory=list, compare=False)

    @property
    def category_ids(self) -> list[UUID]:
        """Identifiers of the linked categories, in link order."""
        return [link.category_id for link in self.product_categories]


@dataclass
class FilterValues:
    """Option lists for filter widgets, aggregated across all variants.

    Attributes:
        colors: Distinct non-empty colors in first-seen order.
        sizes: Distinct non-empty sizes in first-seen order.
        prices: Every variant price, duplicates kept.
    """

    colors: list[str] = field(default_factory=list)
    sizes: list[str] = field(default_factory=list)
    prices: list[Decimal] = field(default_factory=list)
