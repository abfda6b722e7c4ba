"""
Cosmos DB demo worker with Application Insights telemetry.

Runs a fixed create/read/query/replace/delete workflow against an Azure
Cosmos DB account, one span per step and one nested span per store call,
with the store's per-call diagnostics attached to the spans and exported
through OpenTelemetry to Application Insights.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from cosmos_demo.config import Settings, get_settings
from cosmos_demo.host import run_host
from cosmos_demo.infrastructure.telemetry import TelemetryClient, configure_telemetry
from cosmos_demo.utils.logging import configure_logging, get_logger
from cosmos_demo.worker import Worker

__all__ = [
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Workflow
    "Worker",
    "run_host",
    # Telemetry
    "TelemetryClient",
    "configure_telemetry",
    # Logging
    "configure_logging",
    "get_logger",
]
