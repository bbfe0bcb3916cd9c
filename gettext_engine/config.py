"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseModel):
    ttl_seconds: int = Field(default=7200, ge=0, description="0 keeps dictionaries until invalidated.")


class PendingStoreSettings(BaseModel):
    dsn: str | None = Field(
        default=None,
        description="SQLAlchemy DSN for persisting pending strings; in-memory when unset.",
    )
    scope: str | None = Field(
        default=None,
        description="Session scope for the SQL store; required with a DSN unless passed to the factory.",
    )
    echo: bool = False


class TranslatorSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRANSLATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    production_mode: bool | None = None
    namespace: str = Field(default="gettext-engine", min_length=1)
    instance_tag: str | None = None
    default_language: str = "en"
    sections: dict[str, Path] = Field(default_factory=dict)
    scan_directory: Path | None = None
    file_lock_timeout_seconds: float = Field(default=-1, description="-1 waits indefinitely.")

    cache: CacheSettings = Field(default_factory=CacheSettings)
    pending: PendingStoreSettings = Field(default_factory=PendingStoreSettings)

    @field_validator("instance_tag", "scan_directory", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_production(self) -> bool:
        if self.production_mode is not None:
            return self.production_mode
        return self.environment == "prod"

    @property
    def effective_namespace(self) -> str:
        if self.instance_tag:
            return f"{self.namespace}-{self.instance_tag}"
        return self.namespace


@lru_cache
def get_settings() -> TranslatorSettings:
    """Return cached settings instance."""

    return TranslatorSettings()


__all__ = [
    "CacheSettings",
    "PendingStoreSettings",
    "TranslatorSettings",
    "get_settings",
]
