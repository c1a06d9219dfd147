from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config_file import Settings, get_settings


def build_engine(settings: Settings) -> Engine:
    """Create the engine for the configured database.

    SQLite (used by tests and local tooling) gets a single-thread-safe
    connection; PostgreSQL gets a pooled engine pinned to UTC.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        return create_engine(url, echo=settings.DEBUG, future=True, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        echo=settings.DEBUG,
        future=True,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        connect_args={
            "connect_timeout": settings.DB_CONNECT_TIMEOUT_SECONDS,
            "options": "-c timezone=utc",
        },
    )


engine = build_engine(get_settings())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
