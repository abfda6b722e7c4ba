"""
Telemetry client for the Cosmos DB telemetry demo.

Wraps an OpenTelemetry ``TracerProvider`` behind the small surface the worker
needs: scoped, nestable operations with string properties, exception
tracking, and flush. Spans go to Application Insights through the Azure
Monitor exporter when a connection string is configured.

Usage:
    telemetry = configure_telemetry(settings)

    with telemetry.start_operation("create_database") as operation:
        operation.add_property("PartitionKey", "Andersen")

    telemetry.flush()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from azure.monitor.opentelemetry.exporter import (
    ApplicationInsightsSampler,
    AzureMonitorLogExporter,
    AzureMonitorTraceExporter,
)
from opentelemetry import trace
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON, ParentBased, Sampler
from opentelemetry.trace import SpanKind, Status, StatusCode

from cosmos_demo.config import Settings, get_settings
from cosmos_demo.infrastructure.diagnostics import CosmosDiagnostics
from cosmos_demo.utils.logging import get_logger

log = get_logger(__name__)

DIAGNOSTICS_PROPERTY = "CosmosDbDiagnostics"
_FLUSH_TIMEOUT_MILLIS = 30_000


class Operation:
    """A started span plus the string properties recorded on it."""

    def __init__(self, name: str, span: trace.Span) -> None:
        self.name = name
        self.span = span
        self.properties: Dict[str, str] = {}

    def add_property(self, key: str, value: Any) -> None:
        text = str(value)
        self.properties[key] = text
        self.span.set_attribute(key, text)

    def add_diagnostics(self, diagnostics: CosmosDiagnostics) -> None:
        self.add_property(DIAGNOSTICS_PROPERTY, diagnostics)


class TelemetryClient:
    """
    Process-wide telemetry handle.

    Parameters
    ----------
    tracer_provider : TracerProvider
        Provider owning the span processors and exporters.
    logger_provider : LoggerProvider | None
        Provider for exported log records, if log export is enabled.
    log_handler : logging.Handler | None
        Handler bridging stdlib logging into ``logger_provider``; detached
        from the root logger on shutdown.
    """

    def __init__(
        self,
        tracer_provider: TracerProvider,
        logger_provider: Optional[LoggerProvider] = None,
        log_handler: Optional[logging.Handler] = None,
    ) -> None:
        self._tracer_provider = tracer_provider
        self._logger_provider = logger_provider
        self._log_handler = log_handler
        self._tracer = tracer_provider.get_tracer("cosmos_demo")

    @contextmanager
    def start_operation(
        self,
        name: str,
        kind: SpanKind = SpanKind.SERVER,
        start_time: Optional[int] = None,
    ) -> Iterator[Operation]:
        """
        Start a span as a child of the current one and make it current.

        The span ends on every exit path; an exception leaving the block is
        recorded on it and re-raised. ``start_time`` (epoch nanoseconds)
        backdates the span to when the work actually began.
        """
        with self._tracer.start_as_current_span(name, kind=kind, start_time=start_time) as span:
            yield Operation(name, span)

    def track_exception(self, exc: BaseException) -> None:
        """Record ``exc`` on the current span and mark the span failed."""
        span = trace.get_current_span()
        span.record_exception(exc)
        span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"))

    def flush(self, timeout_millis: int = _FLUSH_TIMEOUT_MILLIS) -> bool:
        """Push buffered spans (and log records) to the exporters."""
        flushed = self._tracer_provider.force_flush(timeout_millis)
        if self._logger_provider is not None:
            flushed = self._logger_provider.force_flush(timeout_millis) and flushed
        if not flushed:
            log.warning("Telemetry flush timed out", extra={"timeout_millis": timeout_millis})
        return flushed

    def shutdown(self) -> None:
        if self._log_handler is not None:
            logging.getLogger().removeHandler(self._log_handler)
            self._log_handler = None
        if self._logger_provider is not None:
            self._logger_provider.shutdown()
        self._tracer_provider.shutdown()


def build_sampler(settings: Settings) -> Sampler:
    """
    Adaptive sampling keeps everything in-process and leaves rate control to
    the backend; fixed sampling keeps ``fixed_sampling_percentage`` percent.
    """
    if settings.enable_adaptive_sampling:
        return ParentBased(ALWAYS_ON)
    return ApplicationInsightsSampler(sampling_ratio=settings.fixed_sampling_percentage / 100.0)


def configure_telemetry(settings: Optional[Settings] = None) -> TelemetryClient:
    """
    Build the telemetry client from settings.

    No global tracer provider is installed; the returned client is passed to
    whoever needs it.
    """
    settings = settings or get_settings()
    resource = Resource.create(
        {SERVICE_NAME: settings.service_name, DEPLOYMENT_ENVIRONMENT: settings.app_env}
    )
    tracer_provider = TracerProvider(resource=resource, sampler=build_sampler(settings))
    logger_provider: Optional[LoggerProvider] = None
    log_handler: Optional[logging.Handler] = None

    connection_string = settings.appinsights_connection_string
    if connection_string:
        tracer_provider.add_span_processor(
            BatchSpanProcessor(AzureMonitorTraceExporter(connection_string=connection_string))
        )
        if settings.export_logs:
            logger_provider = LoggerProvider(resource=resource)
            logger_provider.add_log_record_processor(
                BatchLogRecordProcessor(AzureMonitorLogExporter(connection_string=connection_string))
            )
            log_handler = LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
            logging.getLogger().addHandler(log_handler)
    else:
        log.warning("APPLICATIONINSIGHTS_CONNECTION_STRING is not set; spans are not exported")

    if settings.console_spans:
        tracer_provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    log.info(
        "Telemetry configured",
        extra={
            "adaptive_sampling": settings.enable_adaptive_sampling,
            "fixed_sampling_percentage": settings.fixed_sampling_percentage,
            "export_logs": log_handler is not None,
        },
    )
    return TelemetryClient(tracer_provider, logger_provider, log_handler)


__all__ = [
    "DIAGNOSTICS_PROPERTY",
    "Operation",
    "TelemetryClient",
    "build_sampler",
    "configure_telemetry",
]
