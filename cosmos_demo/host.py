"""
Process host for the demo worker.

Builds the process-wide collaborators (Cosmos client, telemetry client),
runs the worker once and then gives the telemetry exporters time to deliver
before the process exits.

Usage (example from CLI):
    from cosmos_demo.host import run_host

    results = asyncio.run(run_host(settings))
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
from typing import Callable, List, Optional

from azure.cosmos.aio import CosmosClient

from cosmos_demo import events
from cosmos_demo.config import Settings, get_settings
from cosmos_demo.domain.models import StepResult
from cosmos_demo.infrastructure.cosmos_factory import build_cosmos_client
from cosmos_demo.infrastructure.telemetry import TelemetryClient, configure_telemetry
from cosmos_demo.utils.logging import get_logger
from cosmos_demo.worker import ROOT_OPERATION, Worker

log = get_logger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _install_stop_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in _STOP_SIGNALS:
        # Not available on Windows event loops; Ctrl+C then surfaces as KeyboardInterrupt.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, _request_stop, stop, sig)


def _remove_stop_handlers() -> None:
    loop = asyncio.get_running_loop()
    for sig in _STOP_SIGNALS:
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(sig)


def _request_stop(stop: asyncio.Event, sig: signal.Signals) -> None:
    if not stop.is_set():
        log.warning(
            "Stop requested; the current step will finish before the host stops",
            extra={"signal": sig.name},
        )
    stop.set()


def _record_host_error(telemetry: TelemetryClient, exc: Exception) -> None:
    """
    Record a failure raised while opening the Cosmos client.

    Opening the client reads the account, so network and auth errors surface
    before the worker starts; they are reported on a root operation the same
    way the worker reports a failed step.
    """
    with telemetry.start_operation(ROOT_OPERATION):
        telemetry.track_exception(exc)
    events.log_execute_error(log, exc)


async def run_worker(
    cosmos_client: CosmosClient,
    telemetry: TelemetryClient,
    settings: Settings,
    stop: Optional[asyncio.Event] = None,
) -> List[StepResult]:
    """
    Run the worker once unless a stop was requested before it started.

    An in-flight run is never cancelled; the stop event is only checked here.
    """
    if stop is not None and stop.is_set():
        log.warning("Stop requested before start; skipping demo run")
        return []
    worker = Worker(cosmos_client, telemetry, settings)
    await worker.run_demo()
    return worker.results


async def run_host(
    settings: Optional[Settings] = None,
    client_factory: Callable[[Settings], CosmosClient] = build_cosmos_client,
    telemetry_factory: Callable[[Settings], TelemetryClient] = configure_telemetry,
) -> List[StepResult]:
    """
    Run the demo once and drain telemetry.

    Parameters
    ----------
    settings : Settings | None
        Effective configuration. Defaults to the cached process settings.
    client_factory : callable
        Builds the Cosmos client; replaced in tests.
    telemetry_factory : callable
        Builds the telemetry client; replaced in tests.

    Returns
    -------
    List[StepResult]
        Outcome of every step the worker attempted.
    """
    settings = settings or get_settings()
    telemetry = telemetry_factory(settings)
    stop = asyncio.Event()
    _install_stop_handlers(stop)
    results: List[StepResult] = []
    try:
        async with client_factory(settings) as cosmos_client:
            results = await run_worker(cosmos_client, telemetry, settings, stop)
    except Exception as exc:  # noqa: BLE001 - client setup fails outside the worker's boundary
        _record_host_error(telemetry, exc)
    finally:
        try:
            # Exporters send asynchronously; a short-lived process must wait for them.
            telemetry.flush()
            if settings.telemetry_drain_seconds > 0:
                log.info(
                    "Waiting for telemetry delivery",
                    extra={"drain_seconds": settings.telemetry_drain_seconds},
                )
                await asyncio.sleep(settings.telemetry_drain_seconds)
        finally:
            # Stop handlers stay installed through the drain so a signal cannot cut it short.
            _remove_stop_handlers()
            telemetry.shutdown()
    return results


__all__ = ["run_host", "run_worker"]
