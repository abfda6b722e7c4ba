from __future__ import annotations

from rich.console import Console

from cosmos_demo.domain.models import StepOutcome, StepResult
from cosmos_demo.reporter import build_results_table, print_results

RESULTS = [
    StepResult(name="create_database", outcome=StepOutcome.SUCCEEDED, duration_seconds=0.012),
    StepResult(name="ensure_item Andersen.1", outcome=StepOutcome.ALREADY_EXISTS),
    StepResult(
        name="query_items",
        outcome=StepOutcome.FAILED,
        duration_seconds=0.5,
        detail="CosmosHttpResponseError: throttled",
    ),
]


def _render(results) -> str:
    console = Console(record=True, width=160)
    print_results(results, console=console)
    return console.export_text()


def test_print_results_renders_one_row_per_step() -> None:
    text = _render(RESULTS)

    assert "create_database" in text
    assert "already_exists" in text
    assert "CosmosHttpResponseError: throttled" in text
    assert "500.0" in text
    assert "Run failed" in text


def test_build_results_table_marks_successful_run() -> None:
    table = build_results_table(RESULTS[:2])

    assert table.row_count == 2
    assert table.caption == "Run completed"


def test_print_results_handles_empty_run() -> None:
    assert "No steps were run." in _render([])
