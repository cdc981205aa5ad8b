"""Application layer - drafts, results, unit of work and the shared mutation flow."""

from storecatalog.application.drafts import ProductDraft, PromotionDraft, VariantDraft, parse_draft
from storecatalog.application.mutations import EntityMutation, MutationState
from storecatalog.application.results import OperationResult, ResultStatus
from storecatalog.application.unit_of_work import StagedOperation, UnitOfWork

__all__ = [
    "EntityMutation",
    "MutationState",
    "OperationResult",
    "ProductDraft",
    "PromotionDraft",
    "ResultStatus",
    "StagedOperation",
    "UnitOfWork",
    "VariantDraft",
    "parse_draft",
]
