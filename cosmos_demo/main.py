from __future__ import annotations

import asyncio

import typer

from cosmos_demo.config import get_settings
from cosmos_demo.host import run_host
from cosmos_demo.infrastructure.cosmos_factory import account_endpoint
from cosmos_demo.reporter import print_results
from cosmos_demo.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Cosmos DB demo worker with Application Insights telemetry.")

log = get_logger(__name__)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    endpoint = account_endpoint(settings.cosmos_connection_string) or "<not set>"
    sampling = (
        "adaptive"
        if settings.enable_adaptive_sampling
        else f"fixed {settings.fixed_sampling_percentage:g}%"
    )
    appinsights = "set" if settings.appinsights_connection_string else "<not set>"
    typer.echo(
        f"Cosmos={endpoint} db={settings.cosmos_database_id} "
        f"container={settings.cosmos_container_id} pk={settings.cosmos_partition_key_path} | "
        f"AppInsights={appinsights} sampling={sampling} "
        f"drain={settings.telemetry_drain_seconds:g}s"
    )


@app.command()
def run() -> None:
    """
    Run the demo workflow once and print the step outcomes.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    if not settings.cosmos_connection_string:
        log.error("COSMOSDB_CONNECTION_STRING is not set; nothing to run")
        return

    results = asyncio.run(run_host(settings))
    print_results(results)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)


if __name__ == "__main__":
    main()
