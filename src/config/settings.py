"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Telephony platform REST API
    platform_server_url: str = Field(
        default="https://platform.ringcentral.com",
        description="Base URL of the telephony platform, without the /restapi/v1.0 suffix.",
    )
    platform_access_token: str | None = Field(
        default=None,
        description="Bearer token used for every REST request.",
    )
    platform_request_timeout: float = Field(default=30.0, gt=0)

    # Session tracking
    account_level: bool = Field(
        default=False,
        description="Track the sessions of every extension in the account instead of the current one.",
    )
    preload_sessions: bool = Field(
        default=True,
        description="Load currently active calls on startup.",
    )
    preload_devices: bool = Field(
        default=True,
        description="Load the device inventory of the current extension on startup.",
    )

    @field_validator("platform_server_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
