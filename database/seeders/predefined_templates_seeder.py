"""Predefined report templates seeder."""

import logging

from sqlalchemy.orm import Session

from app.core.reporting.predefined import get_predefined_templates
from app.core.reporting.templates import ReportTemplateManager
from app.core.seeders.base import Seeder
from app.repositories.reporting_repository import ReportingRepository

logger = logging.getLogger(__name__)


class PredefinedTemplatesSeeder(Seeder):
    """Seeder for the system report templates.

    Creates "Daily Security Summary", "Agent Health Dashboard" and "Weekly
    Threat Report" as public templates owned by ``system``. Templates that
    already exist (matched by name) are left untouched.
    """

    def run(self, db: Session) -> None:
        """Run the seeder.

        Args:
            db: Database session
        """
        manager = ReportTemplateManager(ReportingRepository(db))
        created = manager.ensure_predefined(get_predefined_templates())
        if created:
            logger.info(f"Seeded {len(created)} predefined report template(s)")
        else:
            logger.info("Predefined report templates already present")
