"""Product service.

Keeps a product and its category links consistent: every create, update
and delete of a product and its links runs as one unit of work, so either
all rows change or none do. Also serves the product read paths (by id,
listing, pagination, search and variant-based filtering).
"""

from collections.abc import Iterable, Sequence
from typing import Any
from uuid import UUID

import structlog

from storecatalog.application.base_service import CatalogServiceBase
from storecatalog.application.drafts import ProductDraft, parse_draft
from storecatalog.application.mutations import EntityMutation
from storecatalog.application.results import OperationResult, ResultStatus
from storecatalog.application.unit_of_work import UnitOfWork
from storecatalog.catalog.entities import Category, Product, ProductCategory, utcnow
from storecatalog.catalog.filters import FilterComposer, FilterRequest
from storecatalog.catalog.gateway import EntityKind
from storecatalog.catalog.pagination import Page, PageRequest, paginate
from storecatalog.catalog.predicates import (
    NEWEST_FIRST,
    AnyOf,
    Contains,
    Eq,
    In,
    OrderBy,
)
from storecatalog.domain.exceptions import EntityNotFoundError, ReferentialViolationError
from storecatalog.domain.identity import require_identity

logger = structlog.get_logger()

VARIANT_ORDER = (OrderBy("created_at"), OrderBy("id"))


class ProductService(CatalogServiceBase):
    """Service for product writes and reads.

    Example usage:
        service = ProductService(gateway)
        result = await service.create_product(
            ProductDraft(title="Linen shirt", category_ids=[shirts_id]),
        )
        if not result.success:
            print(result.status, result.message)
    """

    section = "ProductMessages"
    status_messages = {
        ResultStatus.INVALID_IDENTITY: "ProductNotFound",
        ResultStatus.NOT_FOUND: "ProductNotFound",
        ResultStatus.REFERENTIAL_VIOLATION: "CategoryNotFound",
    }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_product(self, draft: ProductDraft | dict[str, Any]) -> OperationResult[Product]:
        """Create a product together with its category links.

        Every requested category must exist; otherwise nothing is written,
        not even the product row.

        Args:
            draft: Desired product state.

        Returns:
            Result carrying the persisted product and its new id.
        """

        async def operation() -> OperationResult[Product]:
            data = parse_draft(ProductDraft, draft)
            async with UnitOfWork(self.gateway) as uow:
                product = Product(
                    title=data.title,
                    slug=data.slug,
                    supplier=data.supplier,
                    content=data.content,
                    description=data.description,
                    images=list(data.images),
                    expiry_date=data.expiry_date,
                    created_at=utcnow(),
                )
                product_id = uow.stage_insert(EntityKind.PRODUCT, product)
                categories = await self._resolve_categories(data.category_ids)
                links = [
                    ProductCategory(product_id=product_id, category_id=category.id)
                    for category in categories
                ]
                for link in links:
                    uow.stage_insert(EntityKind.PRODUCT_CATEGORY, link)
                await uow.commit()

            for link, category in zip(links, categories):
                link.category = category
            product.product_categories = links
            logger.info(
                "Product created",
                product_id=str(product_id),
                category_count=len(links),
            )
            return OperationResult.ok(product, self.message("CreateProductSuccess"), entity_id=product_id)

        return await self._execute("create_product", operation, "CreateProductFailure")

    async def update_product(
        self,
        product_id: UUID | str | None,
        draft: ProductDraft | dict[str, Any],
    ) -> OperationResult[Product]:
        """Overwrite a product and replace its category links.

        The submitted ``category_ids`` become the complete link set. Links
        are compared as sets and left untouched when unchanged.

        Args:
            product_id: Product to update.
            draft: Complete desired product state.

        Returns:
            Result carrying the updated product.
        """

        async def operation() -> OperationResult[Product]:
            data = parse_draft(ProductDraft, draft)
            async with UnitOfWork(self.gateway) as uow:

                async def apply(product: Product) -> None:
                    product.title = data.title
                    product.slug = data.slug
                    product.supplier = data.supplier
                    product.content = data.content
                    product.description = data.description
                    product.images = list(data.images)
                    product.expiry_date = data.expiry_date
                    product.updated_at = utcnow()
                    await self._replace_links(uow, product, data.category_ids)

                product = await EntityMutation[Product](uow, EntityKind.PRODUCT).update(product_id, apply)

            await self._hydrate([product])
            return OperationResult.ok(product, self.message("UpdateProductSuccess"), entity_id=product.id)

        return await self._execute("update_product", operation, "UpdateProductFailure", entity_id=product_id)

    async def delete_product(self, product_id: UUID | str | None) -> OperationResult[Product]:
        """Remove a product; storage cascades its links and variants.

        Args:
            product_id: Product to delete.

        Returns:
            Result carrying the product as it was before removal.
        """

        async def operation() -> OperationResult[Product]:
            async with UnitOfWork(self.gateway) as uow:

                async def snapshot(product: Product) -> None:
                    await self._hydrate([product])

                product = await EntityMutation[Product](uow, EntityKind.PRODUCT).delete(product_id, snapshot)

            return OperationResult.ok(product, self.message("DeleteProductSuccess"), entity_id=product.id)

        return await self._execute("delete_product", operation, "DeleteProductFailure", entity_id=product_id)

    async def _resolve_categories(self, category_ids: Iterable[UUID]) -> list[Category]:
        """Fetch every requested category, de-duplicated, in request order.

        Raises:
            ReferentialViolationError: If any category does not exist.
        """
        categories: list[Category] = []
        missing: list[UUID] = []
        for category_id in dict.fromkeys(category_ids):
            category = await self.gateway.find_by_id(EntityKind.CATEGORY, category_id)
            if category is None:
                missing.append(category_id)
            else:
                categories.append(category)
        if missing:
            raise ReferentialViolationError("Category", missing)
        return categories

    async def _replace_links(
        self,
        uow: UnitOfWork,
        product: Product,
        category_ids: Sequence[UUID],
    ) -> None:
        existing = await self.gateway.query(
            EntityKind.PRODUCT_CATEGORY,
            Eq("product_id", product.id),
        )
        requested = list(dict.fromkeys(category_ids))
        if {link.category_id for link in existing} == set(requested):
            logger.debug("Category links unchanged", product_id=str(product.id))
            return

        categories = await self._resolve_categories(requested)
        for link in existing:
            uow.stage_remove(EntityKind.PRODUCT_CATEGORY, link.key)
        for category in categories:
            uow.stage_insert(
                EntityKind.PRODUCT_CATEGORY,
                ProductCategory(product_id=product.id, category_id=category.id),
            )
        logger.info(
            "Category links replaced",
            product_id=str(product.id),
            removed=len(existing),
            added=len(categories),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_product(self, product_id: UUID | str | None) -> OperationResult[Product]:
        """Get a product with its category links and variants."""

        async def operation() -> OperationResult[Product]:
            identity = require_identity(product_id, "Product")
            product = await self.gateway.find_by_id(EntityKind.PRODUCT, identity)
            if product is None:
                raise EntityNotFoundError("Product", identity)
            await self._hydrate([product])
            return OperationResult.ok(product, self.message("FetchProductSuccess"), entity_id=identity)

        return await self._execute("get_product", operation, "FetchProductFailure", entity_id=product_id)

    async def list_products(self) -> OperationResult[list[Product]]:
        """List every product, newest first."""

        async def operation() -> OperationResult[list[Product]]:
            products = await self.gateway.query(EntityKind.PRODUCT, ordering=NEWEST_FIRST)
            await self._hydrate(products)
            return OperationResult.ok(products, self.message("FetchProductSuccess"))

        return await self._execute("list_products", operation, "FetchProductFailure")

    async def list_products_page(
        self,
        page_number: int | None = 1,
        page_size: int | None = None,
        route: str | None = None,
    ) -> OperationResult[Page[Product]]:
        """List one page of products, newest first.

        Args:
            page_number: Requested page (clamped to ≥ 1).
            page_size: Requested size (clamped to the configured bounds).
            route: Optional listing route for navigation links.

        Returns:
            Result carrying the page.
        """

        async def operation() -> OperationResult[Page[Product]]:
            request = PageRequest.clamped(
                page_number,
                page_size,
                default_page_size=self.settings.default_page_size,
                max_page_size=self.settings.max_page_size,
            )
            total = await self.gateway.count(EntityKind.PRODUCT)
            products = await self.gateway.query(
                EntityKind.PRODUCT,
                ordering=NEWEST_FIRST,
                offset=request.offset,
                limit=request.limit,
            )
            await self._hydrate(products)
            page = paginate(products, request, total, route)
            return OperationResult.ok(page, self.message("FetchProductSuccess"))

        return await self._execute("list_products_page", operation, "FetchProductFailure")

    async def search_products(self, term: str | None) -> OperationResult[list[Product]]:
        """Find products whose slug or title contains ``term``.

        An empty term matches every product.
        """

        async def operation() -> OperationResult[list[Product]]:
            predicate = AnyOf((Contains("slug", term), Contains("title", term))) if term else None
            products = await self.gateway.query(EntityKind.PRODUCT, predicate, ordering=NEWEST_FIRST)
            await self._hydrate(products)
            return OperationResult.ok(products, self.message("FetchProductSuccess"))

        return await self._execute("search_products", operation, "FetchProductFailure")

    async def filter_products(
        self,
        request: FilterRequest | dict[str, Any],
    ) -> OperationResult[list[Product]]:
        """Find products having at least one variant matching a filter.

        Args:
            request: Sparse filter; absent fields do not restrict.

        Returns:
            Result carrying matching products, each exactly once, newest first.
        """

        async def operation() -> OperationResult[list[Product]]:
            filters = parse_draft(FilterRequest, request)
            predicate = FilterComposer.from_request(filters).build()
            if not predicate.predicates:
                products = await self.gateway.query(EntityKind.PRODUCT, ordering=NEWEST_FIRST)
            else:
                variants = await self.gateway.query(EntityKind.SUB_PRODUCT, predicate)
                product_ids = list(dict.fromkeys(variant.product_id for variant in variants))
                products = []
                if product_ids:
                    products = await self.gateway.query(
                        EntityKind.PRODUCT,
                        In.of("id", product_ids),
                        ordering=NEWEST_FIRST,
                    )
            await self._hydrate(products)
            logger.debug(
                "Products filtered",
                predicate_count=len(predicate.predicates),
                matched=len(products),
            )
            return OperationResult.ok(products, self.message("FetchProductSuccess"))

        return await self._execute("filter_products", operation, "FetchProductFailure")

    async def _hydrate(self, products: list[Product]) -> None:
        """Attach category links (with categories) and variants to products."""
        if not products:
            return
        product_ids = [product.id for product in products]
        links = await self.gateway.query(EntityKind.PRODUCT_CATEGORY, In.of("product_id", product_ids))
        category_ids = [link.category_id for link in links]
        categories = {}
        if category_ids:
            categories = {
                category.id: category
                for category in await self.gateway.query(EntityKind.CATEGORY, In.of("id", category_ids))
            }
        variants = await self.gateway.query(
            EntityKind.SUB_PRODUCT,
            In.of("product_id", product_ids),
            ordering=VARIANT_ORDER,
        )
        for product in products:
            product.product_categories = [link for link in links if link.product_id == product.id]
            for link in product.product_categories:
                link.category = categories.get(link.category_id)
            product.sub_products = [variant for variant in variants if variant.product_id == product.id]
