"""Read-only message table.

User-facing messages for operation results, grouped by section. The table
is built once at startup from the defaults below merged with any
overrides from ``Settings.messages`` and handed to services by injection.
"""

from collections.abc import Mapping
from types import MappingProxyType

from storecatalog.infrastructure.config import Settings

DEFAULT_MESSAGES: dict[str, dict[str, str]] = {
    "ProductMessages": {
        "CreateProductSuccess": "Product created successfully.",
        "CreateProductFailure": "Failed to create product.",
        "UpdateProductSuccess": "Product updated successfully.",
        "UpdateProductFailure": "Failed to update product.",
        "DeleteProductSuccess": "Product deleted successfully.",
        "DeleteProductFailure": "Failed to delete product.",
        "ProductNotFound": "Product not found.",
        "CategoryNotFound": "Category does not exist.",
        "FetchProductSuccess": "Fetched successfully.",
        "FetchProductFailure": "Failed to fetch products.",
    },
    "SubProductMessages": {
        "CreateSubProductSuccess": "SubProduct created successfully.",
        "CreateSubProductFailure": "Failed to create SubProduct.",
        "UpdateSubProductSuccess": "SubProduct updated successfully.",
        "UpdateSubProductFailure": "Failed to update SubProduct.",
        "DeleteSubProductSuccess": "SubProduct deleted successfully.",
        "DeleteSubProductFailure": "Failed to delete SubProduct.",
        "SubProductNotFound": "SubProduct not found.",
        "InvalidProductId": "Invalid Product_Id.",
        "FetchSubProductSuccess": "Fetched successfully",
        "FetchSubProductFailure": "Failed to fetch SubProducts.",
    },
    "PromotionMessages": {
        "CreatePromotionSuccess": "Add new promotion successfully.",
        "CreatePromotionFailure": "Failed to add promotion.",
        "UpdatePromotionSuccess": "Update successfully promotion",
        "UpdatePromotionFailure": "Failed to update promotion.",
        "DeletePromotionSuccess": "Delete successfully promotion",
        "DeletePromotionFailure": "Failed to delete promotion.",
        "PromotionNotFound": "Promotion Not Found",
        "InvalidPromotionId": "Id Not Found",
        "FetchPromotionSuccess": "Get all promotion successfully.",
        "FetchPromotionFailure": "Failed to fetch promotions.",
    },
}


class MessageCatalog:
    """Immutable two-level lookup of message text.

    Example usage:
        messages = MessageCatalog.from_settings(settings)
        messages.get("ProductMessages", "ProductNotFound")
    """

    def __init__(self, sections: Mapping[str, Mapping[str, str]]) -> None:
        self._sections = MappingProxyType(
            {name: MappingProxyType(dict(entries)) for name, entries in sections.items()}
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "MessageCatalog":
        """Build the table from defaults plus configured overrides.

        Args:
            settings: Application settings.

        Returns:
            Message catalog.
        """
        merged = {name: dict(entries) for name, entries in DEFAULT_MESSAGES.items()}
        for name, entries in settings.messages.items():
            merged.setdefault(name, {}).update(entries)
        return cls(merged)

    @property
    def sections(self) -> Mapping[str, Mapping[str, str]]:
        """All sections (read-only)."""
        return self._sections

    def get(self, section: str, key: str) -> str:
        """Look up a message.

        Missing entries fall back to ``"<section>.<key>"`` so a missing
        translation never breaks an operation.

        Args:
            section: Message section (e.g. "ProductMessages").
            key: Message name.

        Returns:
            Message text.
        """
        return self._sections.get(section, {}).get(key, f"{section}.{key}")

    def failure(self, section: str, key: str, reason: str) -> str:
        """Look up a failure message and append the underlying reason."""
        return f"{self.get(section, key)} {reason}".strip()
