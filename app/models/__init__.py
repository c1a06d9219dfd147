from app.core.db.session import Base
from app.models.reporting import GeneratedReport, ReportTemplate, ReportTemplateVersion

__all__ = [
    "Base",
    "GeneratedReport",
    "ReportTemplate",
    "ReportTemplateVersion",
]
