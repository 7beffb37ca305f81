"""equipark - workstation inventory ingestion and compliance scoring."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from .. import __version__


@click.group()
@click.version_option(__version__, prog_name="equipark")
def equipark_cli() -> None:
    """Evaluate provider equipment inventories against technical thresholds."""


@equipark_cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--thresholds", "-t", type=click.Path(exists=True, dir_okay=False), help="Threshold YAML file")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), help="Project with .equipark/")
@click.option("--output-format", "-f", type=click.Choice(["table", "json", "markdown"]), default="table")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the report to a file")
@click.option("--ci", is_flag=True, help="CI mode: exit 1 when any workstation is non-compliant")
@click.option("--cpu-min-ghz", type=float, help="Override the minimum CPU clock speed")
@click.option("--ram-min-gb", type=float, help="Override the minimum RAM")
@click.option("--disk-min-gb", type=float, help="Override the minimum disk capacity")
@click.option("--os-required", type=str, help="Override the required operating system marker")
def evaluate(
    file: str,
    thresholds: str | None,
    project: str | None,
    output_format: str,
    output: str | None,
    ci: bool,
    cpu_min_ghz: float | None,
    ram_min_gb: float | None,
    disk_min_gb: float | None,
    os_required: str | None,
) -> None:
    """Ingest FILE (CSV or xlsx) and score every workstation."""
    from ..core.runner import run_evaluation

    overrides = {
        "cpu_min_ghz": cpu_min_ghz,
        "ram_min_gb": ram_min_gb,
        "disk_min_gb": disk_min_gb,
        "os_required": os_required,
    }

    exit_code = run_evaluation(
        file_path=Path(file),
        thresholds_file=Path(thresholds) if thresholds else None,
        project_path=Path(project) if project else None,
        output_format=output_format,
        output_path=Path(output) if output else None,
        ci=ci,
        cli_overrides=overrides,
    )
    sys.exit(exit_code)


@equipark_cli.command()
@click.option("--thresholds", "-t", type=click.Path(exists=True, dir_okay=False), help="Threshold YAML file")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), help="Project with .equipark/")
@click.option("--mode", type=click.Choice(["ON_SITE", "REMOTE"], case_sensitive=False))
def thresholds(thresholds: str | None, project: str | None, mode: str | None) -> None:
    """Print the effective thresholds as YAML."""
    from ..core.runner import show_thresholds

    exit_code = show_thresholds(
        thresholds_file=Path(thresholds) if thresholds else None,
        project_path=Path(project) if project else None,
        mode=mode.upper() if mode else None,
    )
    sys.exit(exit_code)


@equipark_cli.command()
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), required=True)
def init(project: str) -> None:
    """Initialize equipark thresholds in a project."""
    from ..core.runner import initialize_project

    initialize_project(Path(project))


def main() -> None:
    equipark_cli()


if __name__ == "__main__":
    main()
