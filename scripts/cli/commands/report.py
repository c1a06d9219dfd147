"""Report generation commands."""

import asyncio
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from app.core.reporting.exceptions import ReportingError
from app.core.reporting.sources import get_data_source_registry
from app.schemas.reporting import DateRange, GeneratedReportResponse, GenerateReportRequest

app = typer.Typer(help="Report generation commands")
console = Console()


def print_report(report: GeneratedReportResponse) -> None:
    """Print one row per widget and the execution summary."""
    table = Table(title=report.template_name, show_header=True, header_style="bold cyan")
    table.add_column("Widget", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Rows", justify="right")
    table.add_column("Error", style="red")
    for widget in report.data:
        table.add_row(widget.widget_id, widget.widget_type, str(len(widget.data)), widget.error or "")
    console.print(table)

    meta = report.metadata
    console.print(
        f"\nReport {report.id}: {meta.total_records} record(s) in {meta.execution_time_ms} ms"
    )
    console.print(f"Filters: {meta.filters_summary}")


@app.command()
def generate(
    template_id: UUID = typer.Argument(..., help="Template ID"),
    user: str = typer.Option("system", "--user", "-u", help="Generate as this user"),
    start: str = typer.Option(None, "--start", help="Date range start (ISO 8601)"),
    end: str = typer.Option(None, "--end", help="Date range end (ISO 8601)"),
) -> None:
    """Generate a report from a template and store it."""
    from app.core.db.session import SessionLocal
    from app.core.reporting.service import ReportingService

    if (start is None) != (end is None):
        console.print("[red]Error: --start and --end must be given together[/red]")
        raise typer.Exit(1)

    request = GenerateReportRequest(
        template_id=template_id,
        date_range=DateRange(start=start, end=end) if start else None,
    )
    db = SessionLocal()
    try:
        service = ReportingService(db, registry=get_data_source_registry())
        report = asyncio.run(service.generate_report(user, request))
        print_report(GeneratedReportResponse.model_validate(report))
    except ReportingError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()


@app.command()
def templates(
    user: str = typer.Option("system", "--user", "-u", help="List as this user"),
) -> None:
    """List the templates visible to a user."""
    from app.core.db.session import SessionLocal
    from app.core.reporting.service import ReportingService

    db = SessionLocal()
    try:
        service = ReportingService(db, registry=get_data_source_registry())
        rows = service.list_templates(user)
    finally:
        db.close()

    table = Table(title="Report Templates", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Category", style="yellow")
    table.add_column("Widgets", justify="right")
    table.add_column("Version", justify="right")
    for template in rows:
        table.add_row(
            str(template.id),
            template.name,
            template.category,
            str(len(template.widgets or [])),
            str(template.version),
        )
    console.print(table)
