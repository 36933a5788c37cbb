"""
Configuration settings for indexbench.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..storage.gateway import Endpoint


class Settings(BaseSettings):
    """indexbench configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MongoDB
    mongodb_uri: SecretStr = Field(
        default=SecretStr("mongodb://localhost:27017"),
        description="MongoDB connection URI",
    )
    mongodb_database: str = Field(
        default="index_benchmark",
        description="Database holding the benchmark collections",
    )
    server_selection_timeout_ms: int = Field(
        default=5000,
        ge=100,
        description="Driver server selection timeout",
    )

    # Target collections
    small_collection: str = Field(
        default="products_1m",
        description="Collection used when the size tag matches small_size_tag",
    )
    large_collection: str = Field(
        default="products_10m",
        description="Collection used for every other size tag",
    )
    small_size_tag: str = Field(
        default="1m",
        description="Size tag that selects the small collection",
    )

    # Query settings
    default_limit: int = Field(
        default=100,
        ge=1,
        description="Result cap applied when a request does not set one",
    )

    # Trial settings
    baseline_repetitions: int = Field(
        default=5,
        ge=1,
        description="Timed repetitions per leg for the no-index vs index scenario",
    )
    comparison_repetitions: int = Field(
        default=3,
        ge=1,
        description="Timed repetitions per leg for the comparison scenarios",
    )
    unindexed_warmup_iterations: int = Field(
        default=1,
        ge=0,
        description="Untimed queries before timing a leg without an index",
    )
    indexed_warmup_iterations: int = Field(
        default=2,
        ge=0,
        description="Untimed queries before timing a leg after building an index",
    )

    # Index readiness
    index_settle_delay_ms: int = Field(
        default=500,
        ge=0,
        description="Fixed delay used when index readiness cannot be observed",
    )
    index_ready_timeout_ms: int = Field(
        default=10000,
        ge=0,
        description="Upper bound on polling for a freshly built index",
    )
    index_poll_interval_ms: int = Field(
        default=100,
        ge=1,
        description="Delay between index readiness polls",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for the indexbench loggers",
    )

    def endpoint(self) -> Endpoint:
        """Default endpoint built from the configured URI and database."""
        return Endpoint(
            uri=self.mongodb_uri.get_secret_value(),
            database=self.mongodb_database,
        )

    def collection_for(self, size_tag: str | None) -> str:
        """Map a collection size tag to a collection name."""
        if size_tag == self.small_size_tag:
            return self.small_collection
        return self.large_collection


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
