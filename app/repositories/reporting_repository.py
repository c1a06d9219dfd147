"""Reporting repository for data access operations."""

from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from app.models.reporting import GeneratedReport, ReportTemplate, ReportTemplateVersion


class ReportingRepository:
    """Repository for reporting data access."""

    def __init__(self, db: Session):
        """Initialize repository with database session."""
        self.db = db

    # ReportTemplate operations
    def create_template(self, template_data: dict) -> ReportTemplate:
        """Create a new report template."""
        template = ReportTemplate(**template_data)
        self.db.add(template)
        self.db.commit()
        self.db.refresh(template)
        return template

    def get_template_by_id(self, template_id: UUID, fresh: bool = False) -> ReportTemplate | None:
        """Get template by ID.

        With ``fresh`` the row is re-read even when the session already holds it.
        """
        query = self.db.query(ReportTemplate).filter(ReportTemplate.id == template_id)
        if fresh:
            query = query.populate_existing()
        return query.first()

    def get_predefined_template_by_name(self, name: str) -> ReportTemplate | None:
        """Get a system-seeded template by name."""
        return (
            self.db.query(ReportTemplate)
            .filter(
                ReportTemplate.name == name,
                ReportTemplate.is_predefined.is_(True),
            )
            .first()
        )

    def get_visible_templates(
        self,
        user_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> list[ReportTemplate]:
        """Get the user's own templates plus all public templates, newest first."""
        query = self.db.query(ReportTemplate).filter(
            or_(
                ReportTemplate.created_by == user_id,
                ReportTemplate.is_public.is_(True),
            )
        )
        if category:
            query = query.filter(ReportTemplate.category == category)

        templates = query.order_by(ReportTemplate.updated_at.desc()).all()

        # Tags live in a JSON array; match any requested tag
        if tags:
            wanted = set(tags)
            templates = [t for t in templates if wanted.intersection(t.tags or [])]
        return templates

    def update_template(
        self, template: ReportTemplate, template_data: dict, expected_version: int
    ) -> bool:
        """Apply changes to a template if it is still at ``expected_version``.

        The version check and the write are one UPDATE statement, so a
        concurrent update in between makes this one match no row. In that case
        the transaction (including pending snapshots) is rolled back.

        Returns:
            True if the row was updated, False on a version conflict
        """
        result = self.db.execute(
            update(ReportTemplate)
            .where(
                ReportTemplate.id == template.id,
                ReportTemplate.version == expected_version,
            )
            .values(**template_data)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            return False
        self.db.commit()
        self.db.refresh(template)
        return True

    def delete_template(self, template: ReportTemplate) -> None:
        """Hard-delete a template and its version snapshots."""
        self.db.query(ReportTemplateVersion).filter(
            ReportTemplateVersion.template_id == template.id
        ).delete(synchronize_session=False)
        self.db.delete(template)
        self.db.commit()

    # ReportTemplateVersion operations
    def create_template_version(self, version_data: dict) -> ReportTemplateVersion:
        """Store a template snapshot (committed with the next template change)."""
        version = ReportTemplateVersion(**version_data)
        self.db.add(version)
        return version

    def get_template_versions(self, template_id: UUID) -> list[ReportTemplateVersion]:
        """Get template snapshots, newest first."""
        return (
            self.db.query(ReportTemplateVersion)
            .filter(ReportTemplateVersion.template_id == template_id)
            .order_by(ReportTemplateVersion.version.desc())
            .all()
        )

    # GeneratedReport operations (append-only)
    def create_generated_report(self, report_data: dict) -> GeneratedReport:
        """Persist a generated report."""
        report = GeneratedReport(**report_data)
        self.db.add(report)
        self.db.commit()
        self.db.refresh(report)
        return report

    def get_generated_report_by_id(self, report_id: UUID) -> GeneratedReport | None:
        """Get generated report by ID."""
        return (
            self.db.query(GeneratedReport)
            .filter(GeneratedReport.id == report_id)
            .first()
        )

    def get_generated_reports(
        self,
        generated_by: str,
        template_id: UUID | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[GeneratedReport]:
        """Get reports generated by a user with pagination, newest first."""
        query = self.db.query(GeneratedReport).filter(
            GeneratedReport.generated_by == generated_by
        )
        if template_id:
            query = query.filter(GeneratedReport.template_id == template_id)
        return (
            query.order_by(GeneratedReport.generated_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_generated_reports(
        self, generated_by: str, template_id: UUID | None = None
    ) -> int:
        """Count reports generated by a user."""
        query = self.db.query(GeneratedReport).filter(
            GeneratedReport.generated_by == generated_by
        )
        if template_id:
            query = query.filter(GeneratedReport.template_id == template_id)
        return query.count()
