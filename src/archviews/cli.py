"""CLI interface for archviews using Typer framework."""

import json as jsonlib
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from archviews import __description__, __version__
from archviews.artifacts import ArtifactGenerator
from archviews.config import ArchviewsConfig, load_config
from archviews.document import DocumentError, build_workspace, load_document, open_workspace
from archviews.schemas import SchemaGenerator
from archviews.validation import ValidationFramework, ValidationResult

app = typer.Typer(
    name="archviews",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)

console = Console()

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"archviews version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option("--version", "-v", callback=version_callback, help="Show version and exit")
    ] = False,
) -> None:
    """archviews - View population and layout reconciliation for architecture models."""


def _load_config(config: Path | None) -> ArchviewsConfig:
    archviews_config = load_config(config)
    logging.basicConfig(
        level=LOG_LEVELS.get(archviews_config.logging.level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="[%X]"
    )
    return archviews_config


def _print_issues(result: ValidationResult) -> None:
    status_color = "green" if result.status.value == "pass" else "yellow" if result.status.value == "warn" else "red"
    console.print(f"[{status_color}]Validation Status: {result.status.value.upper()}[/{status_color}]")

    if result.counters:
        counter_table = Table()
        counter_table.add_column("Metric", style="cyan")
        counter_table.add_column("Count", style="white", justify="right")
        for key, value in sorted(result.counters.items()):
            counter_table.add_row(key.replace("_", " ").title(), str(value))
        console.print(counter_table)

    if not result.issues:
        console.print("\n[green]No issues found![/green]")
        return

    issues_table = Table()
    issues_table.add_column("Rule", style="cyan")
    issues_table.add_column("Severity", style="white")
    issues_table.add_column("Message", style="white")
    issues_table.add_column("Location", style="dim")
    for issue in result.issues:
        severity_color = "red" if issue.severity.value == "fail" else "yellow"
        location = " ".join(part for part in (issue.view, issue.path) if part)
        issues_table.add_row(
            issue.rule,
            f"[{severity_color}]{issue.severity.value.upper()}[/{severity_color}]",
            issue.message,
            location
        )
    console.print(issues_table)


@app.command()
def validate(
    design: Annotated[
        Path,
        typer.Argument(help="Path to workspace document (JSON)")
    ],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: table, json (default: table)")
    ] = "table",
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file path (default: search for .archviews.json)")
    ] = None,
) -> None:
    """Check references, names and view integrity of a design."""
    if format not in ("table", "json"):
        console.print(f"[red]Error:[/red] Invalid format '{format}'. Must be one of: table, json")
        raise typer.Exit(1)

    try:
        archviews_config = _load_config(config)
        workspace, result = build_workspace(load_document(design), archviews_config)
        framework = ValidationFramework(archviews_config)
        framework.create_default_rules()
        result = framework.validate(workspace, result)
    except (DocumentError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if format == "json":
        typer.echo(jsonlib.dumps(result.to_dict(), indent=2))
    else:
        _print_issues(result)

    raise typer.Exit(result.exit_code)


@app.command()
def views(
    design: Annotated[
        Path,
        typer.Argument(help="Path to workspace document (JSON)")
    ],
    layout: Annotated[
        Path | None,
        typer.Option("--layout", "-l", help="Snapshot of a previous build whose layout is carried over")
    ] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output directory (default: from configuration)")
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file path (default: search for .archviews.json)")
    ] = None,
) -> None:
    """Populate the views of a design and write them with a layout snapshot."""
    try:
        archviews_config = _load_config(config)
        workspace, _ = open_workspace(design, archviews_config)

        generator = ArtifactGenerator(archviews_config, out)
        snapshot = layout
        if snapshot is None and archviews_config.layout.enabled:
            candidate = generator.output_dir / archviews_config.layout.snapshot_file
            snapshot = candidate if candidate.exists() else None
        if snapshot is not None:
            previous, _ = build_workspace(load_document(snapshot), archviews_config)
            id_map = workspace.merge_layout(previous)
            console.print(f"[green]Carried layout from[/green] {snapshot} ({len(id_map)} matches)")

        artifacts = generator.generate_all_artifacts(workspace)
    except DocumentError as e:
        console.print(f"[red]Error:[/red] {e}")
        if e.result is not None:
            _print_issues(e.result)
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Views of {workspace.name}")
    table.add_column("Key", style="cyan")
    table.add_column("Kind", style="white")
    table.add_column("Elements", justify="right")
    table.add_column("Relationships", justify="right")
    for view in workspace.views.all():
        table.add_row(view.key, view.kind.value, str(len(view.element_views)),
                      str(len(view.relationship_views)))
    console.print(table)

    for name, path in artifacts.items():
        console.print(f"[green]{name}:[/green] {path}")


@app.command("layout")
def show_layout(
    design: Annotated[
        Path,
        typer.Argument(help="Path to workspace document or snapshot (JSON)")
    ],
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file path (default: search for .archviews.json)")
    ] = None,
) -> None:
    """Print the saved layout of a design, keyed by view key."""
    try:
        archviews_config = _load_config(config)
        workspace, _ = open_workspace(design, archviews_config)
    except (DocumentError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    typer.echo(jsonlib.dumps(workspace.layout().to_dict(), indent=2))


@app.command()
def schema(
    out: Annotated[
        Path,
        typer.Option("--out", "-o", help="Directory for the generated schema files")
    ] = Path("schemas"),
) -> None:
    """Write JSON schemas for workspace documents and layouts."""
    generator = SchemaGenerator()
    generator.generate_all_schemas()
    for name, path in generator.save_schemas(out).items():
        console.print(f"[green]{name}:[/green] {path}")


if __name__ == "__main__":
    app()
