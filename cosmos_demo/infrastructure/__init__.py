"""
Infrastructure package for the Cosmos DB telemetry demo.

Centralizes the two external collaborators: the Cosmos DB client factory and
the OpenTelemetry-backed telemetry client, plus per-call diagnostics. Keep
this layer focused on I/O and resource management, decoupled from the
workflow logic.
"""

from cosmos_demo.infrastructure.cosmos_factory import account_endpoint, build_cosmos_client
from cosmos_demo.infrastructure.diagnostics import CosmosDiagnostics, DiagnosticsRecorder
from cosmos_demo.infrastructure.telemetry import (
    Operation,
    TelemetryClient,
    configure_telemetry,
)

__all__ = [
    "CosmosDiagnostics",
    "DiagnosticsRecorder",
    "Operation",
    "TelemetryClient",
    "account_endpoint",
    "build_cosmos_client",
    "configure_telemetry",
]
