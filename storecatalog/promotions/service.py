"""Promotion service.

Plain CRUD over promotional codes. Updates and deletes go through the same
identity-check → fetch → mutate → persist flow as products and variants.
"""

from typing import Any
from uuid import UUID

import structlog

from storecatalog.application.base_service import CatalogServiceBase
from storecatalog.application.drafts import PromotionDraft, parse_draft
from storecatalog.application.mutations import EntityMutation
from storecatalog.application.results import OperationResult, ResultStatus
from storecatalog.application.unit_of_work import UnitOfWork
from storecatalog.catalog.entities import utcnow
from storecatalog.catalog.gateway import EntityKind
from storecatalog.catalog.predicates import NEWEST_FIRST
from storecatalog.domain.exceptions import EntityNotFoundError
from storecatalog.domain.identity import require_identity
from storecatalog.promotions.entities import Promotion

logger = structlog.get_logger()


class PromotionService(CatalogServiceBase):
    """Service for promotion CRUD."""

    section = "PromotionMessages"
    status_messages = {
        ResultStatus.INVALID_IDENTITY: "InvalidPromotionId",
        ResultStatus.NOT_FOUND: "PromotionNotFound",
    }

    async def add_promotion(self, draft: PromotionDraft | dict[str, Any]) -> OperationResult[Promotion]:
        """Create a promotion.

        A missing validity start defaults to the creation time.
        """

        async def operation() -> OperationResult[Promotion]:
            data = parse_draft(PromotionDraft, draft)
            now = utcnow()
            promotion = Promotion(created_at=now)
            _apply_draft(promotion, data)
            if promotion.start_at is None:
                promotion.start_at = now
            async with UnitOfWork(self.gateway) as uow:
                promotion_id = uow.stage_insert(EntityKind.PROMOTION, promotion)
                await uow.commit()
            logger.info("Promotion created", promotion_id=str(promotion_id), code=promotion.code)
            return OperationResult.ok(promotion, self.message("CreatePromotionSuccess"), entity_id=promotion_id)

        return await self._execute("add_promotion", operation, "CreatePromotionFailure")

    async def list_promotions(self) -> OperationResult[list[Promotion]]:
        async def operation() -> OperationResult[list[Promotion]]:
            promotions = await self.gateway.query(EntityKind.PROMOTION, ordering=NEWEST_FIRST)
            return OperationResult.ok(promotions, self.message("FetchPromotionSuccess"))

        return await self._execute("list_promotions", operation, "FetchPromotionFailure")

    async def get_promotion(self, promotion_id: UUID | str | None) -> OperationResult[Promotion]:
        async def operation() -> OperationResult[Promotion]:
            identity = require_identity(promotion_id, "Promotion")
            promotion = await self.gateway.find_by_id(EntityKind.PROMOTION, identity)
            if promotion is None:
                raise EntityNotFoundError("Promotion", identity)
            return OperationResult.ok(promotion, self.message("FetchPromotionSuccess"), entity_id=identity)

        return await self._execute("get_promotion", operation, "FetchPromotionFailure", entity_id=promotion_id)

    async def update_promotion(
        self,
        promotion_id: UUID | str | None,
        draft: PromotionDraft | dict[str, Any],
    ) -> OperationResult[Promotion]:
        """Overwrite every field of a promotion, including its type."""

        async def operation() -> OperationResult[Promotion]:
            data = parse_draft(PromotionDraft, draft)
            async with UnitOfWork(self.gateway) as uow:

                async def apply(promotion: Promotion) -> None:
                    _apply_draft(promotion, data)

                promotion = await EntityMutation[Promotion](uow, EntityKind.PROMOTION).update(promotion_id, apply)
            return OperationResult.ok(promotion, self.message("UpdatePromotionSuccess"), entity_id=promotion.id)

        return await self._execute("update_promotion", operation, "UpdatePromotionFailure", entity_id=promotion_id)

    async def delete_promotion(self, promotion_id: UUID | str | None) -> OperationResult[Promotion]:
        async def operation() -> OperationResult[Promotion]:
            async with UnitOfWork(self.gateway) as uow:
                promotion = await EntityMutation[Promotion](uow, EntityKind.PROMOTION).delete(promotion_id)
            return OperationResult.ok(promotion, self.message("DeletePromotionSuccess"), entity_id=promotion.id)

        return await self._execute("delete_promotion", operation, "DeletePromotionFailure", entity_id=promotion_id)


def _apply_draft(promotion: Promotion, data: PromotionDraft) -> None:
    promotion.title = data.title
    promotion.description = data.description
    promotion.code = data.code
    promotion.type = data.type
    promotion.value = data.value
    promotion.available_count = data.available_count
    promotion.image_url = data.image_url
    promotion.start_at = data.start_at
    promotion.end_at = data.end_at
