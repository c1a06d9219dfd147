"""Template lifecycle manager: CRUD, visibility and versioning of report templates."""

import logging
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.core.logging import log_template_access_denied
from app.core.reporting.exceptions import (
    AccessDeniedError,
    TemplateNotFoundError,
    VersionConflictError,
)
from app.core.reporting.predefined import SYSTEM_USER
from app.models.reporting import ReportTemplate, ReportTemplateVersion
from app.repositories.reporting_repository import ReportingRepository
from app.schemas.reporting import ReportTemplateCreate, ReportTemplateUpdate

logger = logging.getLogger(__name__)

# Columns stored as JSON documents (camelCase keys, like the API)
JSON_FIELDS = {"widgets", "global_filters", "layout"}
# Columns a patch may clear by sending null
NULLABLE_FIELDS = {"styling"}
# Last-write-wins updates retry this many times when they race another update
MAX_UPDATE_ATTEMPTS = 3


def _to_column(name: str, value: Any) -> Any:
    """Convert a schema value to what the column stores."""
    if name in JSON_FIELDS:
        if isinstance(value, list):
            return [v.model_dump(mode="json", by_alias=True) for v in value]
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return list(value)
    return value


def _template_values(data: ReportTemplateCreate) -> dict[str, Any]:
    return {name: _to_column(name, getattr(data, name)) for name in type(data).model_fields}


def template_snapshot(template: ReportTemplate) -> dict[str, Any]:
    """Serialize the editable state of a template."""
    return {
        "name": template.name,
        "description": template.description,
        "category": template.category,
        "widgets": template.widgets,
        "globalFilters": template.global_filters,
        "layout": template.layout,
        "styling": template.styling,
        "isPublic": template.is_public,
        "tags": template.tags,
        "version": template.version,
    }


class ReportTemplateManager:
    """Manager enforcing ownership and visibility rules on report templates.

    A template is readable by its creator and, when public, by everyone. Only
    the creator may change or delete it, and predefined templates are read-only
    for everyone.
    """

    def __init__(self, repository: ReportingRepository):
        self.repository = repository

    def create(self, user_id: str, data: ReportTemplateCreate) -> ReportTemplate:
        """Create a template owned by ``user_id``.

        Args:
            user_id: Creator
            data: Template definition

        Returns:
            Created template at version 1
        """
        values = _template_values(data)
        values.update({"created_by": user_id, "version": 1, "is_predefined": False})
        template = self.repository.create_template(values)
        logger.info(f"Created report template '{template.name}' (ID: {template.id}) for user {user_id}")
        return template

    def get(self, user_id: str, template_id: UUID, action: str = "read") -> ReportTemplate:
        """Get a template the user may read.

        Raises:
            TemplateNotFoundError: If the template does not exist
            AccessDeniedError: If it is private and owned by someone else
        """
        template = self.repository.get_template_by_id(template_id)
        if not template:
            raise TemplateNotFoundError(template_id)
        if template.created_by != user_id and not template.is_public:
            log_template_access_denied(user_id, str(template_id), action)
            raise AccessDeniedError(f"Access denied to template {template_id}")
        return template

    def _get_owned(self, user_id: str, template_id: UUID, action: str) -> ReportTemplate:
        template = self.repository.get_template_by_id(template_id, fresh=True)
        if not template:
            raise TemplateNotFoundError(template_id)
        if template.is_predefined:
            log_template_access_denied(user_id, str(template_id), action)
            raise AccessDeniedError(f"Predefined template {template_id} is read-only")
        if template.created_by != user_id:
            log_template_access_denied(user_id, str(template_id), action)
            raise AccessDeniedError(f"Only the creator can {action} template {template_id}")
        return template

    def update(
        self,
        user_id: str,
        template_id: UUID,
        patch: ReportTemplateUpdate,
    ) -> ReportTemplate:
        """Apply a partial update and bump the version.

        A snapshot of the current state is stored in the same transaction.
        When the patch names a ``version`` it must equal the stored one, also
        at the moment of the write; without it the update simply overwrites
        (last write wins) and is retried if another update lands in between.

        Args:
            user_id: Caller; must be the creator
            template_id: Template ID
            patch: Fields to change, optional expected version and change note

        Returns:
            Updated template

        Raises:
            TemplateNotFoundError: If the template does not exist
            AccessDeniedError: If the caller is not the creator or the template is predefined
            VersionConflictError: If ``patch.version`` is stale
        """
        update_data: dict[str, Any] = {}
        for name in patch.model_fields_set - {"version", "change_description"}:
            value = getattr(patch, name)
            if value is None and name not in NULLABLE_FIELDS:
                continue
            update_data[name] = _to_column(name, value)

        for _ in range(MAX_UPDATE_ATTEMPTS):
            template = self._get_owned(user_id, template_id, "update")
            current = template.version
            if patch.version is not None and patch.version != current:
                raise VersionConflictError(template_id, patch.version, current)

            self.repository.create_template_version(
                {
                    "template_id": template.id,
                    "version": current,
                    "template_data": template_snapshot(template),
                    "changed_by": user_id,
                    "change_description": patch.change_description,
                }
            )
            values = {**update_data, "version": current + 1}
            if self.repository.update_template(template, values, expected_version=current):
                logger.info(f"Updated report template {template_id} to version {template.version}")
                return template

            if patch.version is not None:
                latest = self.repository.get_template_by_id(template_id, fresh=True)
                if not latest:
                    raise TemplateNotFoundError(template_id)
                raise VersionConflictError(template_id, patch.version, latest.version)
            logger.info(f"Template {template_id} changed during update, retrying")

        raise VersionConflictError(template_id, current, current + 1)

    def delete(self, user_id: str, template_id: UUID) -> None:
        """Hard-delete a template owned by the caller."""
        template = self._get_owned(user_id, template_id, "delete")
        self.repository.delete_template(template)
        logger.info(f"Deleted report template {template_id}")

    def list_templates(
        self,
        user_id: str,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> list[ReportTemplate]:
        """List the user's own templates and every public template."""
        return self.repository.get_visible_templates(user_id, category, tags)

    def get_versions(self, user_id: str, template_id: UUID) -> list[ReportTemplateVersion]:
        """List stored snapshots of a template the user may read, newest first."""
        self.get(user_id, template_id)
        return self.repository.get_template_versions(template_id)

    def ensure_predefined(self, templates: list[ReportTemplateCreate]) -> list[ReportTemplate]:
        """Create the predefined templates that do not exist yet.

        Templates are matched by name, so running this repeatedly is safe.

        Args:
            templates: Predefined template definitions

        Returns:
            Templates created by this call
        """
        created = []
        for data in templates:
            if self.repository.get_predefined_template_by_name(data.name):
                continue
            values = _template_values(data)
            values.update({"created_by": SYSTEM_USER, "version": 1, "is_predefined": True})
            created.append(self.repository.create_template(values))
            logger.info(f"Seeded predefined report template '{data.name}'")
        return created
