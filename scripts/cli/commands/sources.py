"""Data source inspection commands."""

import asyncio
import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from app.core.reporting.exceptions import ReportingError
from app.core.reporting.planner import WidgetQueryPlanner
from app.core.reporting.sources import get_data_source_registry
from app.schemas.reporting import Aggregation, DataSource, QueryDataRequest, ReportFilter

app = typer.Typer(help="Data source inspection commands")
console = Console()


def parse_filter(text: str) -> ReportFilter:
    """Parse ``field:operator:value`` into a filter.

    The value is read as JSON when possible (``severity:in:["high","critical"]``)
    and as a plain string otherwise.
    """
    parts = text.split(":", 2)
    if len(parts) < 2:
        raise typer.BadParameter(f"Expected field:operator[:value], got '{text}'")
    field, operator = parts[0], parts[1]
    value: Any = None
    if len(parts) == 3:
        try:
            value = json.loads(parts[2])
        except ValueError:
            value = parts[2]
    return ReportFilter(field=field, operator=operator, value=value)


@app.command("list")
def list_sources() -> None:
    """List data sources and whether an adapter serves each."""
    table = Table(title="Data Sources", show_header=True, header_style="bold cyan")
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Available")

    for info in get_data_source_registry().list_data_sources():
        table.add_row(
            info.type.value,
            info.name,
            "[green]yes[/green]" if info.available else "[yellow]no[/yellow]",
        )
    console.print(table)


@app.command()
def columns(source: DataSource = typer.Argument(..., help="Data source")) -> None:
    """Show the columns of a data source."""
    try:
        adapter = get_data_source_registry().get(source)
    except ReportingError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{source.value} columns", show_header=True, header_style="bold cyan")
    table.add_column("Field", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Label", style="green")
    for column in adapter.get_columns():
        table.add_row(column["name"], column["type"], column["label"])
    console.print(table)


@app.command()
def query(
    source: DataSource = typer.Argument(..., help="Data source"),
    filter_: list[str] = typer.Option(
        None, "--filter", "-f", help="Filter as field:operator:value (repeatable)"
    ),
    group_by: list[str] = typer.Option(None, "--group-by", "-g", help="Group by field"),
    count: str = typer.Option(None, "--count", help="Count values of this field"),
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Maximum number of records"),
) -> None:
    """Query a data source and print the rows as JSON."""
    request = QueryDataRequest(
        data_source=source,
        filters=[parse_filter(f) for f in filter_ or []],
        group_by=group_by or None,
        aggregation=Aggregation(field=count, type="count") if count else None,
        limit=limit,
    )
    planner = WidgetQueryPlanner(get_data_source_registry())
    try:
        rows = asyncio.run(planner.query_data(request))
    except ReportingError as e:
        console.print(f"[red]✗ Query failed: {e}[/red]")
        raise typer.Exit(1)

    console.print_json(json.dumps(rows, default=str))
    console.print(f"\n[cyan]{len(rows)} row(s)[/cyan]")
