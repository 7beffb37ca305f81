"""Console orchestration for the equipark CLI.

Resolves thresholds, runs the pipeline on one file, renders the result and
maps the outcome onto process exit codes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from .. import __version__
from ..errors import ComplianceConfigError, IngestError
from ..formatters.report import batch_to_dict, export_batch_json, generate_compliance_report
from ..models.job import BatchResult, JobStatus
from ..models.record import AttentionMode
from .config import dump_threshold_config, init_project, load_threshold_config
from .pipeline import run_pipeline

console = Console()

EXIT_OK = 0
EXIT_NONCOMPLIANT = 1
EXIT_INGEST_ERROR = 3
EXIT_CONFIG_ERROR = 4

LEVEL_COLORS = {
    "EXCELLENT": "green",
    "GOOD": "green",
    "ACCEPTABLE": "yellow",
    "DEFICIENT": "red",
    "CRITICAL": "red",
}


def initialize_project(project_path: Path) -> None:
    """Create the .equipark/ directory with default thresholds."""
    config_path = init_project(project_path)
    console.print(f"  [green]Initialized[/green] {config_path.parent.name}/ in {project_path.name}")


def show_thresholds(
    thresholds_file: Optional[Path] = None,
    project_path: Optional[Path] = None,
    mode: Optional[str] = None,
) -> int:
    """Print the effective thresholds as YAML."""
    try:
        config = load_threshold_config(thresholds_file, project_path)
    except ComplianceConfigError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return EXIT_CONFIG_ERROR

    if mode:
        config = config.for_mode(AttentionMode(mode))
    console.print(dump_threshold_config(config), markup=False, highlight=False, soft_wrap=True)
    return EXIT_OK


def _results_table(batch: BatchResult) -> Table:
    table = Table(title=f"{batch.file_id}: {batch.summary.total} workstations")
    table.add_column("Row", justify="right")
    table.add_column("Host")
    table.add_column("Mode")
    table.add_column("Score", justify="right")
    table.add_column("Level")
    table.add_column("Failed")

    for item in batch.items:
        record, result = item.record, item.result
        color = LEVEL_COLORS.get(result.level.value, "white")
        failed = ", ".join(inc.field for inc in result.incumplimientos) or "-"
        table.add_row(
            str(record.row_number or ""),
            record.hostname or record.user_id or "-",
            record.attention_mode.value,
            f"{result.score:.2f}",
            f"[{color}]{result.level.value}[/{color}]",
            failed,
        )
    return table


def _print_summary(batch: BatchResult) -> None:
    s = batch.summary
    console.print()
    console.print(
        f"  Compliant: [green]{s.count_compliant}[/green]  "
        f"Non-compliant: [red]{s.count_noncompliant}[/red]  "
        f"(on-site {s.count_on_site}, remote {s.count_remote})"
    )
    console.print(f"  Average score: [bold]{s.average_score:.2f}[/bold]  Rate: {s.compliance_rate:.2f}%")
    if batch.warnings:
        console.print(f"  [yellow]WARN[/yellow] {len(batch.warnings)} warnings recorded")


def run_evaluation(
    file_path: Path,
    thresholds_file: Optional[Path] = None,
    project_path: Optional[Path] = None,
    output_format: str = "table",
    output_path: Optional[Path] = None,
    ci: bool = False,
    cli_overrides: Optional[dict] = None,
) -> int:
    """Evaluate one inventory file and return the process exit code."""
    try:
        config = load_threshold_config(thresholds_file, project_path, cli_overrides)
    except ComplianceConfigError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return EXIT_CONFIG_ERROR

    verbose = output_format == "table"
    if verbose:
        console.print()
        console.print(f"  [bold cyan]EQUIPARK[/bold cyan] v{__version__}")
        console.print(f"  File:       [white]{file_path.name}[/white]")
        console.print(f"  Thresholds: [white]{config.name} v{config.version}[/white]")
        console.print()

    def on_status(status: JobStatus) -> None:
        if verbose and status not in (JobStatus.COMPLETED, JobStatus.FAILED):
            console.print(f"  [cyan]{status.value.title()}...[/cyan]")

    try:
        data = file_path.read_bytes()
        batch = run_pipeline(data, file_path.name, config=config, on_status=on_status)
    except OSError as e:
        console.print(f"  [red]ERROR[/red] Cannot read {file_path}: {e}")
        return EXIT_INGEST_ERROR
    except IngestError as e:
        console.print(f"  [red]FAILED[/red] {e}")
        return EXIT_INGEST_ERROR
    except ComplianceConfigError as e:
        console.print(f"  [red]ERROR[/red] {e}")
        return EXIT_CONFIG_ERROR

    if output_format == "json":
        if output_path:
            export_batch_json(batch, output_path)
        else:
            console.print(
                json.dumps(batch_to_dict(batch), indent=2, ensure_ascii=False),
                markup=False,
                highlight=False,
                soft_wrap=True,
            )
    elif output_format == "markdown":
        report = generate_compliance_report(batch)
        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report, encoding="utf-8")
        else:
            console.print(report, markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(_results_table(batch))
        _print_summary(batch)
        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(generate_compliance_report(batch), encoding="utf-8")

    if output_path and verbose:
        console.print(f"  Report: {output_path}")

    if ci and batch.summary.count_noncompliant > 0:
        if verbose:
            console.print(f"  CI Mode: Exiting with code {EXIT_NONCOMPLIANT}")
        return EXIT_NONCOMPLIANT
    return EXIT_OK
