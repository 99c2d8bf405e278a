"""
Centralized settings for the GBFS validator.

:class:`ValidatorSettings` is the single, validated, cached source of
truth for timeouts, HTTP identity, concurrency, logging and the API server.
Every field can be set through a ``GBFS_VALIDATOR_*`` environment variable
(e.g. ``GBFS_VALIDATOR_RUN_TIMEOUT=60``) or a ``.env`` file.

Tags:
    gbfs-validator, configuration, settings, pydantic
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ValidatorSettings(BaseSettings):
    """GBFS validator configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GBFS_VALIDATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Retrieval ────────────────────────────────────────────────
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    run_timeout: float = Field(default=120.0, gt=0, description="Deadline for a whole validation run")
    user_agent: str = Field(default="gbfs-validator/0.1")
    max_concurrency: int = Field(default=16, ge=1, description="Documents fetched in parallel")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    # ── API ──────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8080)
    api_title: str = Field(default="GBFS Validator API")
    cors_origins: list[str] = Field(default=["*"])

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return value


@lru_cache(maxsize=1)
def get_settings() -> ValidatorSettings:
    """Cached settings, loaded once per process."""
    return ValidatorSettings()
