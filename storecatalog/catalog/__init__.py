"""Product catalog.

Entities, the predicate tree, the storage gateway contract with its
in-memory implementation, the filter composer and the pagination adapter.
The services (``products``, ``variants``) live in their own modules.
"""

from storecatalog.catalog.entities import (
    Category,
    FilterValues,
    Product,
    ProductCategory,
    SubProduct,
)
from storecatalog.catalog.filters import FilterComposer, FilterRequest
from storecatalog.catalog.gateway import EntityKind, StorageGateway, TransactionHandle
from storecatalog.catalog.memory import InMemoryStorageGateway
from storecatalog.catalog.pagination import Page, PageRequest, paginate

__all__ = [
    # Entities
    "Category",
    "FilterValues",
    "Product",
    "ProductCategory",
    "SubProduct",
    # Gateway
    "EntityKind",
    "InMemoryStorageGateway",
    "StorageGateway",
    "TransactionHandle",
    # Queries
    "FilterComposer",
    "FilterRequest",
    "Page",
    "PageRequest",
    "paginate",
]
