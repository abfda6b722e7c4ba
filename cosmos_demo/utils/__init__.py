"""
Utilities package for the Cosmos DB telemetry demo.

Exports shared logging helpers. Keep this package lightweight and free of
domain-specific logic.
"""

from cosmos_demo.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
