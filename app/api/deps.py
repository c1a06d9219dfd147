"""API dependencies shared by the v1 routers."""

from typing import Annotated

from fastapi import Depends, Header, status
from sqlalchemy.orm import Session

from app.core.db.deps import get_db
from app.core.exceptions import APIException
from app.core.reporting.data_source import DataSourceRegistry
from app.core.reporting.service import ReportingService
from app.core.reporting.sources import get_data_source_registry


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> str:
    """
    Get the caller's identity.

    Authentication happens upstream (gateway or auth middleware), which
    forwards the authenticated user in the ``X-User-Id`` header.

    Returns:
        User ID string.

    Raises:
        APIException: 401 if the header is missing or blank.
    """
    if not x_user_id or not x_user_id.strip():
        raise APIException(
            code="AUTH_UNAUTHORIZED",
            message="Missing X-User-Id header",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return x_user_id.strip()


def get_reporting_service(
    db: Annotated[Session, Depends(get_db)],
    registry: Annotated[DataSourceRegistry, Depends(get_data_source_registry)],
) -> ReportingService:
    """Dependency to get ReportingService."""
    return ReportingService(db, registry=registry)


__all__ = [
    "get_current_user_id",
    "get_db",
    "get_reporting_service",
]
