"""Integration tests for the SQLAlchemy storage gateway on in-memory SQLite."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from storecatalog.application.results import ResultStatus
from storecatalog.catalog.entities import Category, Product, ProductCategory, SubProduct
from storecatalog.catalog.gateway import EntityKind
from storecatalog.catalog.predicates import NEWEST_FIRST, Contains, HasCategory, In
from storecatalog.catalog.products import ProductService
from storecatalog.catalog.variants import VariantService
from storecatalog.domain.exceptions import PersistenceError
from storecatalog.infrastructure.database import create_engine, create_session_factory, create_tables
from storecatalog.infrastructure.sql_gateway import SqlAlchemyStorageGateway
from storecatalog.promotions import Promotion, PromotionType
from storecatalog.promotions.service import PromotionService


@pytest_asyncio.fixture
async def sql_gateway():
    """Gateway over a fresh in-memory SQLite database."""
    engine = create_engine("sqlite+aiosqlite://", poolclass=StaticPool, echo=False)
    await create_tables(engine)
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield SqlAlchemyStorageGateway(session)
    await engine.dispose()


@pytest_asyncio.fixture
async def sql_categories(sql_gateway) -> dict:
    ids = {}
    for title in ("shirts", "shoes", "hats"):
        ids[title] = await sql_gateway.insert(EntityKind.CATEGORY, Category(title=title))
    return ids


@pytest.fixture
def products(sql_gateway, messages, settings) -> ProductService:
    return ProductService(sql_gateway, messages=messages, settings=settings)


@pytest.fixture
def variants(sql_gateway, messages, settings) -> VariantService:
    return VariantService(sql_gateway, messages=messages, settings=settings)


class TestSqlGatewayBasics:
    """Tests for row mapping and transactions."""

    @pytest.mark.asyncio
    async def test_round_trip_keeps_types(self, sql_gateway) -> None:
        """Decimals, lists and aware datetimes survive storage."""
        created_at = datetime(2026, 5, 1, 12, 30, tzinfo=timezone.utc)
        product_id = await sql_gateway.insert(EntityKind.PRODUCT, Product(title="Tee", created_at=created_at))
        variant_id = await sql_gateway.insert(
            EntityKind.SUB_PRODUCT,
            SubProduct(product_id=product_id, size="M", price=Decimal("19.99"), images=["a.png", "b.png"]),
        )

        variant = await sql_gateway.find_by_id(EntityKind.SUB_PRODUCT, variant_id)
        product = await sql_gateway.find_by_id(EntityKind.PRODUCT, product_id)

        assert isinstance(variant, SubProduct)
        assert variant.price == Decimal("19.99")
        assert variant.images == ["a.png", "b.png"]
        assert product.created_at == created_at
        assert product.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_offset_timestamps_keep_their_instant(self, sql_gateway) -> None:
        """Aware timestamps in any zone are stored and read back as the same UTC instant."""
        plus_five = timezone(timedelta(hours=5))
        created_at = datetime(2026, 5, 1, 12, 0, tzinfo=plus_five)
        expiry_date = datetime(2030, 1, 1, 12, 0, tzinfo=plus_five)
        product_id = await sql_gateway.insert(
            EntityKind.PRODUCT,
            Product(title="Tee", created_at=created_at, expiry_date=expiry_date),
        )

        product = await sql_gateway.find_by_id(EntityKind.PRODUCT, product_id)

        assert product.created_at == created_at
        assert product.expiry_date == datetime(2030, 1, 1, 7, 0, tzinfo=timezone.utc)
        assert product.expiry_date.utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_rollback_discards_writes(self, sql_gateway) -> None:
        """Writes made after begin vanish on rollback."""
        handle = await sql_gateway.begin()
        await sql_gateway.insert(EntityKind.CATEGORY, Category(title="Dropped"))
        await sql_gateway.rollback(handle)

        assert await sql_gateway.count(EntityKind.CATEGORY) == 0

    @pytest.mark.asyncio
    async def test_nested_begin_is_rejected(self, sql_gateway) -> None:
        """Only one transaction per gateway."""
        handle = await sql_gateway.begin()

        with pytest.raises(PersistenceError):
            await sql_gateway.begin()
        await sql_gateway.rollback(handle)

    @pytest.mark.asyncio
    async def test_update_and_remove_missing_raise(self, sql_gateway) -> None:
        """Writes against absent rows fail."""
        with pytest.raises(PersistenceError):
            await sql_gateway.update(EntityKind.CATEGORY, Category(id=uuid4(), title="x"))
        with pytest.raises(PersistenceError):
            await sql_gateway.remove(EntityKind.CATEGORY, uuid4())

    @pytest.mark.asyncio
    async def test_link_to_missing_category_violates_foreign_key(self, sql_gateway) -> None:
        """The database rejects links to categories that do not exist."""
        product_id = await sql_gateway.insert(EntityKind.PRODUCT, Product(title="Tee"))

        with pytest.raises(PersistenceError):
            await sql_gateway.insert(EntityKind.PRODUCT_CATEGORY, ProductCategory(product_id, uuid4()))

    @pytest.mark.asyncio
    async def test_unknown_field_raises(self, sql_gateway) -> None:
        """Predicates naming unknown columns are rejected."""
        with pytest.raises(PersistenceError):
            await sql_gateway.query(EntityKind.PRODUCT, In.of("colour", ["red"]))


class TestSqlGatewayQueries:
    """Tests for predicate compilation."""

    @pytest.mark.asyncio
    async def test_contains_ignores_case_and_escapes_wildcards(self, sql_gateway) -> None:
        """Search text is matched literally, ignoring case."""
        await sql_gateway.insert(EntityKind.PRODUCT, Product(title="Linen Shirt"))
        await sql_gateway.insert(EntityKind.PRODUCT, Product(title="100% Wool"))

        assert await sql_gateway.count(EntityKind.PRODUCT, Contains("title", "SHIRT")) == 1
        assert await sql_gateway.count(EntityKind.PRODUCT, Contains("title", "0%")) == 1
        assert await sql_gateway.count(EntityKind.PRODUCT, Contains("title", "_")) == 0

    @pytest.mark.asyncio
    async def test_has_category_for_products(self, sql_gateway, sql_categories) -> None:
        """Products match through their own links; non-UUID ids match nothing."""
        linked = await sql_gateway.insert(EntityKind.PRODUCT, Product(title="Linked"))
        await sql_gateway.insert(EntityKind.PRODUCT, Product(title="Unlinked"))
        await sql_gateway.insert(EntityKind.PRODUCT_CATEGORY, ProductCategory(linked, sql_categories["hats"]))

        matched = await sql_gateway.query(EntityKind.PRODUCT, HasCategory((str(sql_categories["hats"]),)))

        assert [product.id for product in matched] == [linked]
        assert await sql_gateway.count(EntityKind.PRODUCT, HasCategory(("summer",))) == 0

    @pytest.mark.asyncio
    async def test_empty_in_matches_nothing(self, sql_gateway) -> None:
        """An empty membership set selects no rows."""
        await sql_gateway.insert(EntityKind.PRODUCT, Product(title="Tee"))

        assert await sql_gateway.query(EntityKind.PRODUCT, In("id", ())) == []

    @pytest.mark.asyncio
    async def test_ordering_offset_limit(self, sql_gateway) -> None:
        """Newest-first ordering is applied before slicing."""
        start = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for offset in range(5):
            await sql_gateway.insert(
                EntityKind.PRODUCT,
                Product(title=f"P{offset}", created_at=start + timedelta(days=offset)),
            )

        page = await sql_gateway.query(EntityKind.PRODUCT, ordering=NEWEST_FIRST, offset=1, limit=2)

        assert [product.title for product in page] == ["P3", "P2"]


class TestSqlCatalogServices:
    """Service behaviour against a real database."""

    @pytest.mark.asyncio
    async def test_missing_category_persists_nothing(self, products, sql_gateway, sql_categories) -> None:
        """An unknown category rejects the product write atomically."""
        result = await products.create_product(
            {"title": "Tee", "category_ids": [sql_categories["shirts"], uuid4()]},
        )

        assert result.status is ResultStatus.REFERENTIAL_VIOLATION
        assert await sql_gateway.count(EntityKind.PRODUCT) == 0
        assert await sql_gateway.count(EntityKind.PRODUCT_CATEGORY) == 0

    @pytest.mark.asyncio
    async def test_update_replaces_links(self, products, sql_gateway, sql_categories) -> None:
        """The stored link set equals the submitted one after an update."""
        created = await products.create_product(
            {"title": "Tee", "category_ids": [sql_categories["shirts"], sql_categories["shoes"]]},
        )

        result = await products.update_product(
            created.entity_id,
            {"title": "Tee", "category_ids": [sql_categories["hats"]]},
        )

        assert result.success is True
        assert [link.category.title for link in result.data.product_categories] == ["hats"]
        links = await sql_gateway.query(EntityKind.PRODUCT_CATEGORY)
        assert {link.category_id for link in links} == {sql_categories["hats"]}

    @pytest.mark.asyncio
    async def test_delete_cascades(self, products, variants, sql_gateway, sql_categories) -> None:
        """Foreign-key cascades remove links and variants with their product."""
        created = await products.create_product({"title": "Tee", "category_ids": [sql_categories["shirts"]]})
        variant = await variants.add_variant({"product_id": created.entity_id, "size": "M", "price": "10"})

        result = await products.delete_product(created.entity_id)

        assert result.success is True
        assert await sql_gateway.count(EntityKind.PRODUCT_CATEGORY) == 0
        assert await sql_gateway.count(EntityKind.SUB_PRODUCT) == 0
        assert (await variants.get_variant(variant.entity_id)).status is ResultStatus.NOT_FOUND
        assert (await products.get_product(created.entity_id)).status is ResultStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_filter_products(self, products, variants, sql_categories) -> None:
        """Variant filters project to distinct products."""
        tee = await products.create_product({"title": "Tee", "category_ids": [sql_categories["shirts"]]})
        cap = await products.create_product({"title": "Cap", "category_ids": [sql_categories["hats"]]})
        for product, color, price in [(tee, "red", "15"), (tee, "red", "18"), (cap, "red", "30"), (cap, "blue", "12")]:
            await variants.add_variant(
                {"product_id": product.entity_id, "size": "M", "color": color, "price": price},
            )

        by_color_price = await products.filter_products({"colors": ["red"], "price": ["10", "20"]})
        by_category = await products.filter_products({"categories": [str(sql_categories["hats"])]})

        assert [product.title for product in by_color_price.data] == ["Tee"]
        assert [product.title for product in by_category.data] == ["Cap"]

    @pytest.mark.asyncio
    async def test_product_expiry_round_trip(self, products, sql_gateway) -> None:
        """An expiry given with an offset is persisted as the same instant."""
        expiry_date = datetime(2030, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=5)))

        created = await products.create_product({"title": "Shirt", "expiry_date": expiry_date})
        stored = await sql_gateway.find_by_id(EntityKind.PRODUCT, created.entity_id)

        assert created.data.expiry_date == expiry_date
        assert stored.expiry_date == expiry_date
        assert stored.expiry_date == created.data.expiry_date

    @pytest.mark.asyncio
    async def test_returned_price_matches_stored_price(self, products, variants, sql_gateway) -> None:
        """Only prices the column can hold exactly are accepted."""
        created = await products.create_product({"title": "Tee"})

        rejected = await variants.add_variant({"product_id": created.entity_id, "size": "M", "price": "19.999"})
        accepted = await variants.add_variant({"product_id": created.entity_id, "size": "M", "price": "19.99"})
        stored = await sql_gateway.find_by_id(EntityKind.SUB_PRODUCT, accepted.entity_id)

        assert rejected.status is ResultStatus.VALIDATION_ERROR
        assert stored.price == accepted.data.price == Decimal("19.99")
        assert await sql_gateway.count(EntityKind.SUB_PRODUCT) == 1

    @pytest.mark.asyncio
    async def test_variant_needs_existing_parent(self, variants, sql_gateway) -> None:
        """Variants for unknown products are refused before hitting the foreign key."""
        result = await variants.add_variant({"product_id": uuid4(), "size": "M", "price": "1"})

        assert result.status is ResultStatus.REFERENTIAL_VIOLATION
        assert await sql_gateway.count(EntityKind.SUB_PRODUCT) == 0

    @pytest.mark.asyncio
    async def test_promotion_lifecycle(self, sql_gateway, messages, settings) -> None:
        """Promotions round-trip their enum type and can be updated and removed."""
        service = PromotionService(sql_gateway, messages=messages, settings=settings)
        created = await service.add_promotion({"title": "Sale", "code": "SALE", "value": "15"})

        updated = await service.update_promotion(
            created.entity_id,
            {"title": "Sale", "code": "SALE", "type": "fixed_amount", "value": "5"},
        )
        stored = await sql_gateway.find_by_id(EntityKind.PROMOTION, created.entity_id)
        deleted = await service.delete_promotion(created.entity_id)

        assert updated.success is True
        assert isinstance(stored, Promotion)
        assert stored.type is PromotionType.FIXED_AMOUNT
        assert stored.value == Decimal("5")
        assert deleted.success is True
        assert await sql_gateway.count(EntityKind.PROMOTION) == 0

    @pytest.mark.asyncio
    async def test_promotion_window_survives_storage(self, sql_gateway, messages, settings) -> None:
        """The stored validity window is the submitted one, whatever its offset."""
        service = PromotionService(sql_gateway, messages=messages, settings=settings)
        plus_five = timezone(timedelta(hours=5))
        created = await service.add_promotion(
            {
                "title": "Flash",
                "code": "FLASH",
                "value": "10",
                "available_count": 1,
                "start_at": datetime(2026, 6, 1, 3, 0, tzinfo=plus_five),
                "end_at": datetime(2026, 6, 1, 4, 0, tzinfo=plus_five),
            },
        )

        stored = await sql_gateway.find_by_id(EntityKind.PROMOTION, created.entity_id)

        assert stored.start_at == datetime(2026, 5, 31, 22, 0, tzinfo=timezone.utc)
        assert stored.is_active(datetime(2026, 5, 31, 22, 30, tzinfo=timezone.utc))
        assert not stored.is_active(datetime(2026, 6, 1, 3, 30, tzinfo=timezone.utc))
