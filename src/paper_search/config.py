"""Centralized configuration for paper-search using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``PAPER_SEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PAPER_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Search
    default_search_limit: int = Field(default=20, ge=1, description="Result limit used when callers omit one")
    attachment_content_type: str = Field(
        default="application/pdf",
        min_length=1,
        description="Attachment content type that makes a paper selectable",
    )

    # Browse
    default_library_name: str = Field(
        default="My Library",
        min_length=1,
        description="Display name of the unfiled bucket when the store cannot name the library",
    )

    # Cache invalidation
    invalidate_on_types: str = Field(
        default="item,file,collection",
        description="Comma-separated notifier object types that invalidate cached indexes",
    )
    invalidate_on_events: str = Field(
        default="add,modify,delete,move,remove,trash,refresh",
        description="Comma-separated notifier events that invalidate cached indexes",
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON log lines")

    def get_invalidate_types(self) -> list[str]:
        """Get the notifier object types that trigger invalidation."""
        if not self.invalidate_on_types:
            return []
        return [value.strip().lower() for value in self.invalidate_on_types.split(",") if value.strip()]

    def get_invalidate_events(self) -> list[str]:
        """Get the notifier events that trigger invalidation."""
        if not self.invalidate_on_events:
            return []
        return [value.strip().lower() for value in self.invalidate_on_events.split(",") if value.strip()]
