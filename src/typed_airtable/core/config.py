"""Client configuration powered by Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ReadValidation = Literal["error", "warning"]


class ClientSettings(BaseSettings):
    """Strongly typed client settings, read from ``AIRTABLE_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="AIRTABLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str | None = Field(default=None, min_length=1)
    endpoint_url: str = Field(default="https://api.airtable.com")
    request_timeout_ms: int | None = Field(default=300_000, ge=1)
    custom_headers: dict[str, str] = Field(default_factory=dict)

    # Base schemas decide which coercion pair applies to each column, so they
    # are cached rather than refetched on every request.
    schema_cache_ttl_ms: int = Field(default=120_000, ge=0)
    schema_cache_max_bases: int = Field(default=100, ge=1)

    read_validation: ReadValidation = Field(default="error")


@lru_cache
def get_settings() -> ClientSettings:
    """Provide a cached singleton settings instance."""

    return ClientSettings()
