"""Application configuration."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "STAFFPLAN Engine"
    app_env: str = "development"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Fixed FTE divisor for aggregate views, not the per-resource working-day count.
    reference_working_days_per_month: int = Field(default=20, ge=1)
    forecast_lookback_months: int = Field(default=2, ge=1)
    forecast_horizon_months: int = Field(default=12, ge=1)
    # Keep .env support for comma-separated values (non-JSON).
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    model_config = SettingsConfigDict(
        env_prefix="STAFFPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return str(value).strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""

    return Settings()
