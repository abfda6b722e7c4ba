"""
Configuration settings for the Cosmos DB telemetry demo.

Uses Pydantic Settings to load environment variables (and an optional `.env`
file) for the Cosmos DB connection, Application Insights export, sampling
and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Cosmos DB
    cosmos_connection_string: str = Field("", alias="COSMOSDB_CONNECTION_STRING", repr=False)
    cosmos_client_options: Dict[str, Any] = Field(default_factory=dict, alias="COSMOSDB_OPTIONS")
    cosmos_database_id: str = Field("db", alias="COSMOSDB_DATABASE_ID")
    cosmos_container_id: str = Field("items", alias="COSMOSDB_CONTAINER_ID")
    cosmos_partition_key_path: str = Field("/LastName", alias="COSMOSDB_PARTITION_KEY_PATH")
    cosmos_query_max_item_count: Optional[int] = Field(
        None, alias="COSMOSDB_QUERY_MAX_ITEM_COUNT", gt=0
    )

    # Telemetry
    appinsights_connection_string: str = Field(
        "", alias="APPLICATIONINSIGHTS_CONNECTION_STRING", repr=False
    )
    enable_adaptive_sampling: bool = Field(True, alias="APPLICATIONINSIGHTS_ENABLE_ADAPTIVE_SAMPLING")
    fixed_sampling_percentage: float = Field(
        100.0, alias="APPLICATIONINSIGHTS_FIXED_SAMPLING_PERCENTAGE", ge=0.0, le=100.0
    )
    export_logs: bool = Field(True, alias="APPLICATIONINSIGHTS_EXPORT_LOGS")
    console_spans: bool = Field(False, alias="TELEMETRY_CONSOLE_SPANS")
    telemetry_drain_seconds: float = Field(30.0, alias="TELEMETRY_DRAIN_SECONDS", ge=0.0)

    # Application
    service_name: str = Field("cosmos-demo", alias="SERVICE_NAME")
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
