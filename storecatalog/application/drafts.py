"""Write drafts.

Pydantic models describing the complete desired state a caller submits to
a create or update operation. Updates use full-overwrite semantics: the
draft is the new state, not a delta.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, TypeVar
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, model_validator

from storecatalog.domain.exceptions import CatalogValidationError
from storecatalog.domain.identity import EMPTY_ID
from storecatalog.promotions.entities import PromotionType

D = TypeVar("D", bound=BaseModel)


def as_utc(value: datetime) -> datetime:
    """Convert a timestamp to UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class Draft(BaseModel):
    """Base class for write drafts."""

    model_config = ConfigDict(revalidate_instances="always")


class ProductDraft(Draft):
    """Desired state of a product and its category links."""

    title: str = Field(..., min_length=1, description="Product title")
    slug: str = Field(default="", description="URL slug")
    content: str | None = Field(default=None, description="Long-form content")
    description: str | None = Field(default=None, description="Short description")
    images: list[str] = Field(default_factory=list, description="Image references")
    supplier: str | None = Field(default=None, description="Supplier reference")
    expiry_date: UtcDatetime | None = Field(default=None, description="Expiry timestamp")
    category_ids: list[UUID] = Field(
        default_factory=list,
        description="Complete set of categories the product belongs to",
    )


class VariantDraft(Draft):
    """Desired state of a sub-product."""

    product_id: UUID = Field(default=EMPTY_ID, description="Owning product")
    size: str = Field(..., description="Size label")
    color: str = Field(default="", description="Color label")
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Unit price")
    quantity: int = Field(default=0, ge=0, description="Units in stock")
    images: list[str] = Field(default_factory=list, description="Image references")


class PromotionDraft(Draft):
    """Desired state of a promotion."""

    title: str = Field(..., min_length=1, description="Display title")
    description: str | None = Field(default=None, description="Free-text description")
    code: str = Field(..., min_length=1, description="Redemption code")
    type: PromotionType = Field(default=PromotionType.PERCENTAGE, description="Discount type")
    value: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Discount value",
    )
    available_count: int = Field(default=0, ge=0, description="Remaining redemptions")
    image_url: str | None = Field(default=None, description="Banner image reference")
    start_at: UtcDatetime | None = Field(default=None, description="Validity window start")
    end_at: UtcDatetime | None = Field(default=None, description="Validity window end")

    @model_validator(mode="after")
    def check_window_and_value(self) -> "PromotionDraft":
        if self.type is PromotionType.PERCENTAGE and self.value > 100:
            raise ValueError("percentage value cannot exceed 100")
        if self.start_at and self.end_at and self.end_at < self.start_at:
            raise ValueError("end_at must not be earlier than start_at")
        return self


def parse_draft(model: type[D], payload: D | dict[str, Any]) -> D:
    """Validate a draft, converting pydantic errors into domain errors.

    Args:
        model: Draft class to validate against.
        payload: Draft instance or raw mapping.

    Returns:
        Validated draft.

    Raises:
        CatalogValidationError: If any field is invalid.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        field_name = ".".join(str(part) for part in first["loc"]) or model.__name__
        raise CatalogValidationError(field_name, first.get("input"), first["msg"]) from exc
