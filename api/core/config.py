"""Application configuration using pydantic-settings."""

from functools import cached_property, lru_cache
from typing import Literal, Self

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Public origin of the verification pages; QR codes point at
    # {base_url}/verify/{verification_id}
    base_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices(
            "base_url", "BASE_URL", "NEXT_PUBLIC_BASE_URL"
        ),
    )

    # Remote record store (PostgREST / Supabase REST endpoint)
    # Example: "https://project.supabase.co"
    store_url: str = ""
    store_api_key: str = ""

    http_timeout: float = 10.0

    # Verification ID synthesis
    verification_id_prefix: str = "CERT"
    verification_id_strategy: Literal["name_prefix", "random"] = "name_prefix"
    verification_id_max_attempts: int = Field(default=5, ge=1)

    # Exported artifacts: {artifact_prefix}-{verification_id}-{name}.pdf
    artifact_prefix: str = "certificate"
    qr_export_size: int = Field(default=600, ge=64, le=4096)
    # QR bitmaps are encoded at qr_size * scale before being placed
    qr_render_scale: int = Field(default=3, ge=1, le=8)

    # Optional directory searched first for TrueType faces used by PNG exports
    font_dir: str = ""

    # Comma-separated list of allowed CORS origins
    cors_allowed_origins: str = ""

    # Use "redis://host:port" in production for distributed rate limiting
    ratelimit_storage_uri: str = "memory://"

    environment: str = "development"

    # Feature flags, production defaults
    debug: bool = False
    enable_docs: bool = False

    @model_validator(mode="after")
    def validate_config(self) -> Self:
        if not self.debug and not self.store_url:
            raise ValueError(
                "Record store configuration required. "
                "Set STORE_URL (and STORE_API_KEY). "
                "Set DEBUG=true to skip this check in development."
            )
        return self

    @cached_property
    def verification_base_url(self) -> str:
        """Base URL without a trailing slash."""
        return self.base_url.rstrip("/")

    @cached_property
    def allowed_origins(self) -> list[str]:
        """Combines localhost (dev only), base_url, and cors_allowed_origins."""
        origins: list[str] = []

        if self.debug:
            origins.extend(
                [
                    "http://localhost:3000",
                    "http://localhost:8000",
                ]
            )

        if self.verification_base_url not in origins:
            origins.append(self.verification_base_url)

        if self.cors_allowed_origins:
            for origin in self.cors_allowed_origins.split(","):
                origin = origin.strip()
                if origin and origin not in origins:
                    origins.append(origin)

        return origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this in tests to reset settings between test cases.
    After clearing, the next get_settings() call will create
    a fresh Settings instance with current environment variables.

    Example:
        def test_something(monkeypatch):
            monkeypatch.setenv("BASE_URL", "https://certs.example.com")
            clear_settings_cache()
            settings = get_settings()  # Fresh instance
    """
    get_settings.cache_clear()
