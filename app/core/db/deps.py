from collections.abc import Iterator

from sqlalchemy.orm import Session

from app.core.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Request-scoped database session.

    Work left uncommitted when the request fails is rolled back before the
    session is returned to the pool.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
