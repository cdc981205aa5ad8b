"""Variant (sub-product) service.

Variants have their own create/update/delete lifecycle but always belong
to exactly one existing product.
"""

from typing import Any
from uuid import UUID

import structlog

from storecatalog.application.base_service import CatalogServiceBase
from storecatalog.application.drafts import VariantDraft, parse_draft
from storecatalog.application.mutations import EntityMutation
from storecatalog.application.results import OperationResult, ResultStatus
from storecatalog.application.unit_of_work import UnitOfWork
from storecatalog.catalog.entities import FilterValues, SubProduct, utcnow
from storecatalog.catalog.gateway import EntityKind
from storecatalog.catalog.predicates import OrderBy
from storecatalog.domain.exceptions import (
    EntityNotFoundError,
    InvalidParentError,
    ReferentialViolationError,
)
from storecatalog.domain.identity import is_empty_identity, require_identity

logger = structlog.get_logger()


class VariantService(CatalogServiceBase):
    """Service for sub-product CRUD and filter option lists."""

    section = "SubProductMessages"
    status_messages = {
        ResultStatus.INVALID_IDENTITY: "SubProductNotFound",
        ResultStatus.NOT_FOUND: "SubProductNotFound",
    }

    async def add_variant(self, draft: VariantDraft | dict[str, Any]) -> OperationResult[SubProduct]:
        """Create a variant under an existing product.

        Args:
            draft: Desired variant state, including ``product_id``.

        Returns:
            Result carrying the persisted variant and its new id.
        """

        async def operation() -> OperationResult[SubProduct]:
            data = parse_draft(VariantDraft, draft)
            if is_empty_identity(data.product_id):
                raise InvalidParentError(data.product_id)

            async with UnitOfWork(self.gateway) as uow:
                parent = await self.gateway.find_by_id(EntityKind.PRODUCT, data.product_id)
                if parent is None:
                    raise ReferentialViolationError("Product", [data.product_id])
                now = utcnow()
                variant = SubProduct(
                    product_id=data.product_id,
                    size=data.size,
                    color=data.color,
                    price=data.price,
                    quantity=data.quantity,
                    images=list(data.images),
                    created_at=now,
                    updated_at=now,
                )
                variant_id = uow.stage_insert(EntityKind.SUB_PRODUCT, variant)
                await uow.commit()

            logger.info("SubProduct created", variant_id=str(variant_id), product_id=str(data.product_id))
            return OperationResult.ok(variant, self.message("CreateSubProductSuccess"), entity_id=variant_id)

        return await self._execute(
            "add_variant",
            operation,
            "CreateSubProductFailure",
            status_messages={ResultStatus.INVALID_IDENTITY: "InvalidProductId"},
        )

    async def update_variant(
        self,
        variant_id: UUID | str | None,
        draft: VariantDraft | dict[str, Any],
    ) -> OperationResult[SubProduct]:
        """Overwrite a variant from a complete draft.

        Size, price, color, quantity and images are all replaced; the
        owning product never changes.
        """

        async def operation() -> OperationResult[SubProduct]:
            data = parse_draft(VariantDraft, draft)
            async with UnitOfWork(self.gateway) as uow:

                async def apply(variant: SubProduct) -> None:
                    variant.size = data.size
                    variant.price = data.price
                    variant.color = data.color
                    variant.quantity = data.quantity
                    variant.images = list(data.images)
                    variant.updated_at = utcnow()

                variant = await EntityMutation[SubProduct](uow, EntityKind.SUB_PRODUCT).update(variant_id, apply)

            return OperationResult.ok(variant, self.message("UpdateSubProductSuccess"), entity_id=variant.id)

        return await self._execute("update_variant", operation, "UpdateSubProductFailure", entity_id=variant_id)

    async def delete_variant(self, variant_id: UUID | str | None) -> OperationResult[SubProduct]:
        """Remove a variant and return its last state."""

        async def operation() -> OperationResult[SubProduct]:
            async with UnitOfWork(self.gateway) as uow:
                variant = await EntityMutation[SubProduct](uow, EntityKind.SUB_PRODUCT).delete(variant_id)
            return OperationResult.ok(variant, self.message("DeleteSubProductSuccess"), entity_id=variant.id)

        return await self._execute("delete_variant", operation, "DeleteSubProductFailure", entity_id=variant_id)

    async def get_variant(self, variant_id: UUID | str | None) -> OperationResult[SubProduct]:
        async def operation() -> OperationResult[SubProduct]:
            identity = require_identity(variant_id, "SubProduct")
            variant = await self.gateway.find_by_id(EntityKind.SUB_PRODUCT, identity)
            if variant is None:
                raise EntityNotFoundError("SubProduct", identity)
            return OperationResult.ok(variant, self.message("FetchSubProductSuccess"), entity_id=identity)

        return await self._execute("get_variant", operation, "FetchSubProductFailure", entity_id=variant_id)

    async def list_variant_filter_values(self) -> OperationResult[FilterValues]:
        """Collect colors, sizes and prices across every variant.

        Colors and sizes are distinct and non-empty, in first-seen order;
        prices keep duplicates.
        """

        async def operation() -> OperationResult[FilterValues]:
            variants = await self.gateway.query(
                EntityKind.SUB_PRODUCT,
                ordering=(OrderBy("created_at"), OrderBy("id")),
            )
            values = FilterValues()
            for variant in variants:
                if variant.color and variant.color not in values.colors:
                    values.colors.append(variant.color)
                if variant.size and variant.size not in values.sizes:
                    values.sizes.append(variant.size)
                values.prices.append(variant.price)
            return OperationResult.ok(values, self.message("FetchSubProductSuccess"))

        return await self._execute("list_variant_filter_values", operation, "FetchSubProductFailure")
