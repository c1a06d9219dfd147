"""Add report engine tables: report_templates, report_template_versions, generated_reports

Revision ID: add_report_engine_tables
Revises:
Create Date: 2026-10-01 00:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "add_report_engine_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create report_templates table
    op.create_table(
        "report_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("widgets", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("global_filters", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("layout", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("styling", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_predefined", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_templates_category", "report_templates", ["category"], unique=False)
    op.create_index("ix_report_templates_is_public", "report_templates", ["is_public"], unique=False)
    op.create_index("ix_report_templates_created_by", "report_templates", ["created_by"], unique=False)
    op.create_index("idx_report_templates_owner_public", "report_templates", ["created_by", "is_public"], unique=False)

    # Create report_template_versions table
    op.create_table(
        "report_template_versions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("template_data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("changed_by", sa.String(length=255), nullable=False),
        sa.Column("change_description", sa.Text(), nullable=True),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["template_id"], ["report_templates.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_template_versions_template_id", "report_template_versions", ["template_id"], unique=False)
    op.create_index(
        "idx_report_template_versions_template_version",
        "report_template_versions",
        ["template_id", "version"],
        unique=False,
    )

    # Create generated_reports table (no FK: reports outlive their template)
    op.create_table(
        "generated_reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("template_name", sa.String(length=255), nullable=False),
        sa.Column("generated_at", postgresql.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("generated_by", sa.String(length=255), nullable=False),
        sa.Column("filters", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_generated_reports_template_id", "generated_reports", ["template_id"], unique=False)
    op.create_index("ix_generated_reports_generated_at", "generated_reports", ["generated_at"], unique=False)
    op.create_index("ix_generated_reports_generated_by", "generated_reports", ["generated_by"], unique=False)


def downgrade() -> None:
    # Drop indexes
    op.drop_index("ix_generated_reports_generated_by", table_name="generated_reports")
    op.drop_index("ix_generated_reports_generated_at", table_name="generated_reports")
    op.drop_index("ix_generated_reports_template_id", table_name="generated_reports")
    op.drop_index("idx_report_template_versions_template_version", table_name="report_template_versions")
    op.drop_index("ix_report_template_versions_template_id", table_name="report_template_versions")
    op.drop_index("idx_report_templates_owner_public", table_name="report_templates")
    op.drop_index("ix_report_templates_created_by", table_name="report_templates")
    op.drop_index("ix_report_templates_is_public", table_name="report_templates")
    op.drop_index("ix_report_templates_category", table_name="report_templates")

    # Drop tables
    op.drop_table("generated_reports")
    op.drop_table("report_template_versions")
    op.drop_table("report_templates")
