"""Pytest configuration and fixtures for catalog tests."""

from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio

from storecatalog.catalog.entities import Category
from storecatalog.catalog.gateway import EntityKind
from storecatalog.catalog.memory import InMemoryStorageGateway
from storecatalog.catalog.products import ProductService
from storecatalog.catalog.variants import VariantService
from storecatalog.infrastructure.config import Settings
from storecatalog.infrastructure.messages import MessageCatalog
from storecatalog.promotions.service import PromotionService


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(_env_file=None, messages={})


@pytest.fixture
def messages(settings: Settings) -> MessageCatalog:
    """Default message table."""
    return MessageCatalog.from_settings(settings)


@pytest.fixture
def gateway() -> InMemoryStorageGateway:
    """Fresh in-memory storage gateway."""
    return InMemoryStorageGateway()


@pytest.fixture
def product_service(gateway, messages, settings) -> ProductService:
    """Product service over the in-memory gateway."""
    return ProductService(gateway, messages=messages, settings=settings)


@pytest.fixture
def variant_service(gateway, messages, settings) -> VariantService:
    """Variant service over the in-memory gateway."""
    return VariantService(gateway, messages=messages, settings=settings)


@pytest.fixture
def promotion_service(gateway, messages, settings) -> PromotionService:
    """Promotion service over the in-memory gateway."""
    return PromotionService(gateway, messages=messages, settings=settings)


@pytest_asyncio.fixture
async def categories(gateway) -> dict[str, UUID]:
    """Seed three categories and return their ids by title."""
    ids = {}
    for title in ("shirts", "shoes", "hats"):
        ids[title] = await gateway.insert(EntityKind.CATEGORY, Category(title=title))
    gateway.operations.clear()
    return ids


@pytest.fixture
def create_product(product_service) -> Callable[..., Awaitable[UUID]]:
    """Factory creating a product through the service and returning its id."""

    async def _create(title: str = "Linen shirt", category_ids: list[UUID] | None = None, **fields: Any) -> UUID:
        result = await product_service.create_product(
            {"title": title, "category_ids": category_ids or [], **fields},
        )
        assert result.success, result.message
        return result.entity_id

    return _create


@pytest.fixture
def create_variant(variant_service) -> Callable[..., Awaitable[UUID]]:
    """Factory creating a variant through the service and returning its id."""

    async def _create(
        product_id: UUID,
        size: str = "M",
        color: str = "red",
        price: str | Decimal = "10",
        **fields: Any,
    ) -> UUID:
        result = await variant_service.add_variant(
            {
                "product_id": product_id,
                "size": size,
                "color": color,
                "price": Decimal(str(price)),
                **fields,
            },
        )
        assert result.success, result.message
        return result.entity_id

    return _create
