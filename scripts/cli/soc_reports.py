"""Main CLI entry point for SOC Reports."""

import typer
from rich.console import Console

from scripts.cli.commands import db, report, sources

app = typer.Typer(
    name="soc-reports",
    help="SOC Reports CLI - database, data source and report tools",
    add_completion=False,
)
console = Console()

# Register subcommands
app.add_typer(db.app, name="db")
app.add_typer(sources.app, name="sources")
app.add_typer(report.app, name="report")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
