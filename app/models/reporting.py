"""Reporting models for report templates, version snapshots and generated reports."""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from app.core.db.session import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class ReportTemplate(Base):
    """Report template model: a saved set of widgets, filters and layout."""

    __tablename__ = "report_templates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(50), nullable=False, index=True)  # security, compliance, ...
    widgets = Column(JSONType, nullable=False, default=list)  # list of widget configs
    global_filters = Column(JSONType, nullable=False, default=list)
    layout = Column(JSONType, nullable=False, default=dict)  # {columns, rowHeight, breakpoints}
    styling = Column(JSONType, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False, index=True)
    is_predefined = Column(Boolean, default=False, nullable=False)  # System-seeded, read-only
    created_by = Column(String(255), nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)
    tags = Column(JSONType, nullable=False, default=list)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_report_templates_owner_public", "created_by", "is_public"),
    )


class ReportTemplateVersion(Base):
    """Snapshot of a template taken before it was updated."""

    __tablename__ = "report_template_versions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    template_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("report_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)
    template_data = Column(JSONType, nullable=False)
    changed_by = Column(String(255), nullable=False)
    change_description = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_report_template_versions_template_version", "template_id", "version"),
    )


class GeneratedReport(Base):
    """Point-in-time output of running a template. Never updated."""

    __tablename__ = "generated_reports"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    # No foreign key: a report outlives the template it was generated from
    template_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    template_name = Column(String(255), nullable=False)
    generated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    generated_by = Column(String(255), nullable=False, index=True)
    filters = Column(JSONType, nullable=False, default=list)  # Fully-resolved filter set
    data = Column(JSONType, nullable=False, default=list)  # One entry per widget
    meta_data = Column("metadata", JSONType, nullable=False, default=dict)
