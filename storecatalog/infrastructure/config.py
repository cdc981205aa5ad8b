"""Application configuration.

Loads settings from environment variables (prefix ``CATALOG_``) and an
optional ``.env`` file, with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service
    version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./catalog.db"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 50

    # Message overrides, keyed by section then message name,
    # e.g. CATALOG_MESSAGES='{"ProductMessages": {"ProductNotFound": "..."}}'
    messages: dict[str, dict[str, str]] = {}

    model_config = {
        "env_prefix": "CATALOG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
