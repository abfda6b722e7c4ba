"""
Cosmos DB client factory for the Cosmos DB telemetry demo.

Builds the single async ``CosmosClient`` the process shares for its lifetime
from the configured connection string and client options. Retries, pooling
and consistency are left to the SDK.
"""

from __future__ import annotations

from typing import Optional

from azure.cosmos.aio import CosmosClient

from cosmos_demo.config import Settings, get_settings


def account_endpoint(connection_string: str) -> Optional[str]:
    """
    Extract ``AccountEndpoint`` from a Cosmos DB connection string.

    Returns None when the string has no endpoint segment. The account key is
    never returned.
    """
    for segment in connection_string.split(";"):
        key, sep, value = segment.partition("=")
        if sep and key.strip().lower() == "accountendpoint":
            return value.strip() or None
    return None


def build_cosmos_client(settings: Optional[Settings] = None) -> CosmosClient:
    """
    Create the async Cosmos client from settings.

    Parameters
    ----------
    settings : Settings | None
        Settings to read the connection string and client options from.
        Defaults to the cached process settings.

    Returns
    -------
    CosmosClient
        An unopened client; use it as an async context manager.

    Raises
    ------
    ValueError
        If no connection string is configured.
    """
    settings = settings or get_settings()
    if not settings.cosmos_connection_string:
        raise ValueError("COSMOSDB_CONNECTION_STRING is not set")
    return CosmosClient.from_connection_string(
        settings.cosmos_connection_string, **settings.cosmos_client_options
    )


__all__ = ["account_endpoint", "build_cosmos_client"]
