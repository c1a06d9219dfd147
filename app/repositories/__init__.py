"""Repositories for data access operations."""

from app.repositories.reporting_repository import ReportingRepository

__all__ = ["ReportingRepository"]
