"""Seeder management module."""

from app.core.seeders.base import Seeder

__all__ = ["Seeder"]
