from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from app.core.config_file import get_settings
from app.core.db.session import Base

# Import all models so Alembic can detect them
from app.models import (  # noqa: F401
    GeneratedReport,
    ReportTemplate,
    ReportTemplateVersion,
)

# this is the Alembic Config object
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Get database URL from settings
settings = get_settings()
config.set_main_option("sqlalchemy.url", settings.database_url)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This configures the context with just a URL, so no DBAPI is needed.
    Calls to context.execute() emit the given string to the script output.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    connect_args = {}
    if settings.database_url.startswith("postgresql"):
        connect_args["options"] = "-c client_encoding=utf8"

    connectable = create_engine(
        settings.database_url,
        poolclass=pool.NullPool,
        echo=False,
        future=True,
        connect_args=connect_args,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
