"""Database management commands."""

from pathlib import Path

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

app = typer.Typer(help="Database management commands")
console = Console()

BACKEND_DIR = Path(__file__).resolve().parent.parent.parent.parent


def _alembic_config():
    from alembic.config import Config

    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "migrations"))
    return cfg


def _seeders() -> dict:
    from database.seeders.database_seeder import DatabaseSeeder
    from database.seeders.predefined_templates_seeder import PredefinedTemplatesSeeder

    return {
        "DatabaseSeeder": DatabaseSeeder,
        "PredefinedTemplatesSeeder": PredefinedTemplatesSeeder,
    }


@app.command()
def migrate(
    revision: str = typer.Option("head", "--revision", "-r", help="Target revision"),
) -> None:
    """Apply migrations up to a revision."""
    from alembic import command

    console.print(f"\n[bold cyan]Upgrading database to {revision}...[/bold cyan]")
    try:
        command.upgrade(_alembic_config(), revision)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Migration failed: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Database is up to date[/green]")


@app.command()
def seed(
    class_name: str = typer.Option(
        "DatabaseSeeder", "--class", "-c", help="Run specific seeder class"
    ),
) -> None:
    """Run database seeders."""
    from app.core.db.session import SessionLocal

    seeders = _seeders()
    seeder_class = seeders.get(class_name)
    if seeder_class is None:
        console.print(f"[red]✗ Unknown seeder '{class_name}'[/red]")
        console.print(f"  Available: {', '.join(sorted(seeders))}")
        raise typer.Exit(1)

    db = SessionLocal()
    try:
        console.print(f"\n[bold cyan]Running seeder: {class_name}[/bold cyan]")
        seeder_class().run(db)
        console.print(f"[green]✓ Seeder '{class_name}' executed successfully[/green]")
    except SQLAlchemyError as e:
        db.rollback()
        console.print(f"[red]✗ Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()
