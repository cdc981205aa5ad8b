"""Promotional codes."""

from storecatalog.promotions.entities import Promotion, PromotionType

__all__ = ["Promotion", "PromotionType"]
