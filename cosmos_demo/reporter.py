from __future__ import annotations

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from cosmos_demo.domain.models import StepOutcome, StepResult

_OUTCOME_STYLES = {
    StepOutcome.CREATED: "green",
    StepOutcome.ALREADY_EXISTS: "cyan",
    StepOutcome.SUCCEEDED: "green",
    StepOutcome.FAILED: "bold red",
}


def build_results_table(results: List[StepResult], title: Optional[str] = None) -> Table:
    """
    Build a rich table with one row per attempted workflow step.
    """
    failed = any(r.outcome is StepOutcome.FAILED for r in results)
    table = Table(
        title=title or "Cosmos DB Demo Run",
        box=box.ROUNDED,
        caption="[red]Run failed[/red]" if failed else "Run completed",
    )

    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Outcome", justify="left")
    table.add_column("Duration (ms)", justify="right", style="magenta")
    table.add_column("Detail", style="dim")

    for res in results:
        style = _OUTCOME_STYLES.get(res.outcome, "white")
        table.add_row(
            res.name,
            f"[{style}]{res.outcome.value}[/{style}]",
            f"{res.duration_seconds * 1000:,.1f}",
            res.detail or "",
        )
    return table


def print_results(results: List[StepResult], console: Optional[Console] = None) -> None:
    """
    Render step results as a rich table.
    """
    console = console or Console()

    if not results:
        console.print("[yellow]No steps were run.[/yellow]")
        return

    console.print(build_results_table(results))
