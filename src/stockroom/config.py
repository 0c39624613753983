"""Application configuration objects."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pydantic settings shared by the inventory client and the reference store."""

    model_config = SettingsConfigDict(
        env_prefix="STOCKROOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(
        default="Stockroom Item Store",
        description="Human friendly name for the reference store API.",
    )
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Deployment environment flag used for logging.",
    )
    store_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the remote item store; /api/items is appended.",
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for a single store request.",
    )
    low_stock_threshold: int = Field(
        default=5,
        ge=0,
        description="Items with a quantity strictly below this are low stock.",
    )
    top_n: int = Field(
        default=3,
        ge=1,
        description="Length of the top-stocked and popularity rankings.",
    )
    undo_grace_period_ms: int = Field(
        default=5000,
        ge=0,
        description="Delay before an undoable delete is sent to the store.",
    )
    price_policy: Literal["sum", "max"] = Field(
        default="sum",
        description="How prices of merged duplicate items are combined.",
    )
    late_undo_policy: Literal["reject", "recreate"] = Field(
        default="reject",
        description="What undo does once the delete was already sent to the store.",
    )
    log_level: str = Field(
        default="INFO",
        description="Level name passed to the stockroom logger.",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./stockroom.db",
        description="SQLAlchemy compatible database URL for the reference store.",
    )
    echo_sql: bool = Field(
        default=False,
        description="Enable SQL echo logging for debugging.",
    )

    @field_validator("database_url")
    @classmethod
    def _validate_sqlite_path(cls, value: str) -> str:
        if value.startswith("sqlite") and ":memory:" not in value and "///" not in value:
            raise ValueError(
                "SQLite database URLs should be in the form sqlite+aiosqlite:///path/to/db"
            )
        return value

    @field_validator("store_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def undo_grace_period(self) -> float:
        """Grace period in seconds."""

        return self.undo_grace_period_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of :class:`Settings`."""

    return Settings()


__all__ = ["Settings", "get_settings"]
