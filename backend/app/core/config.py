from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_PLATFORM_NAME = "Marketplace"
DEFAULT_CURRENCY = "USD"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(..., alias="DATABASE_URL")

    # Admin console (payout processing) is protected with HTTP Basic.
    basic_auth_username: str = Field(..., alias="BASIC_AUTH_USERNAME")
    basic_auth_password: str = Field(..., alias="BASIC_AUTH_PASSWORD")

    # --- Seller auth (JWT bearer) ---
    jwt_secret: str = Field(..., alias="JWT_SECRET")
    jwt_refresh_secret: str = Field(..., alias="JWT_REFRESH_SECRET")
    jwt_access_ttl_seconds: int = Field(3600, alias="JWT_ACCESS_TTL_SECONDS")
    jwt_refresh_ttl_seconds: int = Field(30 * 24 * 3600, alias="JWT_REFRESH_TTL_SECONDS")
    password_hash_rounds: int = Field(12, ge=4, le=31, alias="PASSWORD_HASH_ROUNDS")

    # --- Money ---
    platform_commission_rate_bp: int = Field(1000, ge=0, le=10_000, alias="PLATFORM_COMMISSION_RATE_BP")
    payout_gateway_fee_bp: int = Field(0, ge=0, le=10_000, alias="PAYOUT_GATEWAY_FEE_BP")
    default_currency: str = Field(DEFAULT_CURRENCY, alias="DEFAULT_CURRENCY")

    platform_name: str = Field(DEFAULT_PLATFORM_NAME, alias="PLATFORM_NAME")
    cors_origins: str | None = Field(None, alias="CORS_ORIGINS")

    @field_validator("default_currency", mode="before")
    @classmethod
    def _normalize_currency(cls, v: object) -> object:
        if isinstance(v, str):
            code = v.strip().upper()
            return code or DEFAULT_CURRENCY
        return v

    @field_validator("platform_name", mode="before")
    @classmethod
    def _normalize_platform_name(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip() or DEFAULT_PLATFORM_NAME
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
