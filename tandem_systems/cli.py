"""
Tandem Facility Systems CLI.

Command-line interface for inspecting the systems, properties and streams
of a Tandem facility.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import requests
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api.client import FacilityScanSource, TandemClient
from .core.config import settings
from .core.errors import TandemError
from .reporting.systems_table import render_systems_table, systems_summary
from .schema.cache import SchemaCache
from .schema.diagnostics import run_diagnostics
from .search.property_search import SearchOptions, search_facility
from .streams import load_stream_summaries
from .systems.resolver import FacilitySystemsResolver
from .utils.logging_config import setup_logging

COMMAND_ERRORS = (TandemError, ValidationError, requests.RequestException)

app = typer.Typer(
    name="tandem-systems",
    help="Tandem Facility Systems - cross-model systems, search and streams",
    add_completion=False,
)
console = Console()


def _client() -> TandemClient:
    if not settings.access_token:
        console.print("[red]No access token. Set TANDEM_ACCESS_TOKEN (or add it to .env).[/red]")
        raise typer.Exit(code=1)
    return TandemClient.from_settings(settings)


@app.callback()
def main_options(
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level"),
    log_file: bool = typer.Option(False, "--log-file/--no-log-file", help="Also log to logs/"),
):
    setup_logging(level=log_level.upper(), log_to_file=log_file)


@app.command()
def systems(
    facility_urn: str = typer.Argument(..., help="Facility URN (urn:adsk.dtt:...)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write systems JSON to this file"),
    workers: int = typer.Option(settings.scan_workers, "--workers", "-w", min=1, help="Concurrent model scans"),
):
    """
    Resolve the systems of a facility across all its models.
    """
    with _client() as client:
        resolver = FacilitySystemsResolver(FacilityScanSource(client, facility_urn), max_workers=workers)
        with console.status("Scanning models..."):
            resolved = resolver.resolve()

    render_systems_table(resolved, console=console)

    summary = systems_summary(resolved)
    console.print(f"\n[green]{summary.element_count} member elements[/green]")
    for model_id in resolver.failed_models:
        console.print(f"  [yellow]Skipped model:[/yellow] {model_id}")

    if output:
        output.write_text(json.dumps([s.to_dict() for s in resolved], indent=2))
        console.print(f"\n[green]Saved to {output}[/green]")


@app.command()
def models(
    facility_urn: str = typer.Argument(..., help="Facility URN (urn:adsk.dtt:...)"),
):
    """
    List the models of a facility.
    """
    with _client() as client:
        try:
            descriptors = client.list_models(facility_urn)
        except COMMAND_ERRORS as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)

    table = Table(title=f"{len(descriptors)} Models")
    table.add_column("Model", style="cyan")
    table.add_column("URN", style="dim")
    table.add_column("Main", style="green")
    for model in descriptors:
        table.add_row(model.display_name, model.model_id, "yes" if model.is_main else "")
    console.print(table)


@app.command()
def search(
    facility_urn: str = typer.Argument(..., help="Facility URN (urn:adsk.dtt:...)"),
    property_name: str = typer.Argument(..., help="Category.Name or qualified column (z:LQ)"),
    value: str = typer.Argument(..., help="Value to match"),
    data_type: str = typer.Option("string", "--type", "-t", help="string, numeric or boolean"),
    operator: str = typer.Option("=", "--op", help="Numeric operator: = != > >= < <="),
    match_type: str = typer.Option("partial", "--match", "-m", help="partial, exact or regex"),
    case_sensitive: bool = typer.Option(False, "--case-sensitive/--ignore-case"),
):
    """
    Find elements whose property matches a value, in every model.
    """
    if data_type == "boolean":
        target = value.lower() in ("true", "1", "yes")
    elif data_type == "numeric":
        try:
            target = float(value)
        except ValueError:
            console.print(f"[red]Not a number: {value}[/red]")
            raise typer.Exit(code=1)
    else:
        target = value
    options = SearchOptions(
        value=target,
        data_type=data_type,
        operator=operator,
        match_type=match_type,
        case_sensitive=case_sensitive,
    )

    with _client() as client:
        cache = SchemaCache(client.get_schema)
        try:
            found = search_facility(client, client.list_models(facility_urn), cache, property_name, options)
        except COMMAND_ERRORS as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)

    console.print(Panel.fit(
        f"[bold]{property_name}[/bold] {options.describe()}: {found.total_matches} matches",
        border_style="blue",
    ))
    for result in found.results:
        console.print(f"  [cyan]{result.model_name}[/cyan] ({result.qualified_column}): {len(result.elements)}")
    if found.models_without_property:
        console.print(f"  [dim]Property missing in: {', '.join(found.models_without_property)}[/dim]")


@app.command()
def streams(
    facility_urn: str = typer.Argument(..., help="Facility URN (urn:adsk.dtt:...)"),
):
    """
    Show streams with their last reported values.
    """
    with _client() as client:
        try:
            summaries = load_stream_summaries(client, facility_urn, SchemaCache(client.get_schema))
        except COMMAND_ERRORS as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)

    if not summaries:
        console.print("[yellow]No streams found.[/yellow]")
        return

    table = Table(title=f"{len(summaries)} Streams")
    table.add_column("Stream", style="cyan")
    table.add_column("Classification", style="white")
    table.add_column("Property", style="yellow")
    table.add_column("Last Value", style="green", justify="right")
    table.add_column("Timestamp", style="dim")
    for summary in summaries:
        if not summary.last_values:
            table.add_row(summary.name, summary.classification or "-", "-", "-", "-")
        for value in summary.last_values:
            table.add_row(
                summary.name,
                summary.classification or "-",
                value.display_name,
                str(value.value),
                value.timestamp.isoformat(),
            )
    console.print(table)


@app.command()
def diagnose(
    facility_urn: str = typer.Argument(..., help="Facility URN (urn:adsk.dtt:...)"),
):
    """
    Report duplicate and dotted user properties in every model schema.
    """
    with _client() as client:
        try:
            descriptors = client.list_models(facility_urn)
        except COMMAND_ERRORS as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)
        cache = SchemaCache(client.get_schema)
        names = {}
        for model in descriptors:
            try:
                cache.load(model.model_id)
            except COMMAND_ERRORS as e:
                console.print(f"  [yellow]Skipped model:[/yellow] {model.display_name} ({e})")
                continue
            names[model.model_id] = model.display_name

    reports = run_diagnostics(cache)
    if not reports:
        console.print("[green]No property issues found.[/green]")
        return

    for report in reports:
        console.print(f"\n[bold]{names.get(report.model_urn, report.model_urn)}[/bold]")
        for group in report.duplicates:
            ids = ", ".join(attr["id"] for attr in group)
            console.print(f"  [yellow]Duplicate[/yellow] {group[0].get('category')}.{group[0].get('name')}: {ids}")
        for attr in report.dotted:
            console.print(
                f"  [yellow]Dot in {attr['issueType']}[/yellow] "
                f"{attr.get('category')}.{attr.get('name')} ({attr['id']})"
            )


@app.command()
def version():
    """Show version information."""
    from . import __version__
    console.print(f"Tandem Facility Systems v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
