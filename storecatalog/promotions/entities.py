"""Promotion entities."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import UUID

from storecatalog.domain.identity import EMPTY_ID


class PromotionType(str, Enum):
    """How a promotion's ``value`` is applied."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"


@dataclass
class Promotion:
    """Promotional code with a validity window.

    Attributes:
        id: Promotion identifier.
        title: Display title.
        description: Free-text description.
        code: Code customers enter at checkout.
        type: Discount type.
        value: Discount value (percent or amount, depending on type).
        available_count: Remaining redemptions.
        image_url: Banner image reference.
        start_at: Start of the validity window.
        end_at: End of the validity window.
        created_at: Creation timestamp.
    """

    id: UUID = EMPTY_ID
    title: str = ""
    description: str | None = None
    code: str = ""
    type: PromotionType = PromotionType.PERCENTAGE
    value: Decimal = Decimal("0")
    available_count: int = 0
    image_url: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_active(self, at: datetime | None = None) -> bool:
        """Check whether the promotion can be redeemed at a given time.

        Args:
            at: Moment to check (defaults to now).

        Returns:
            True if inside the validity window with redemptions left.
        """
        moment = at or datetime.now(timezone.utc)
        if self.available_count <= 0:
            return False
        if self.start_at is not None and moment < self.start_at:
            return False
        if self.end_at is not None and moment > self.end_at:
            return False
        return True
