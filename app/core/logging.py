"""Structured logging configuration for reporting and application events."""

import logging
import sys

from app.core.config_file import get_settings

settings = get_settings()

# Create logger for report audit events
report_logger = logging.getLogger("app.reporting.audit")
report_logger.setLevel(logging.INFO)

# Create logger for application events
app_logger = logging.getLogger("app")
app_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

# Create console handler with structured format
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.DEBUG)

# Create formatter
formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
console_handler.setFormatter(formatter)

# Add handler to the root application logger if not already added;
# child loggers (including the audit logger) propagate to it.
if not app_logger.handlers:
    app_logger.addHandler(console_handler)


def log_report_generated(
    report_id: str,
    template_id: str,
    user_id: str,
    execution_time_ms: int,
    total_records: int,
    failed_widgets: int = 0,
) -> None:
    """
    Log a completed report generation.

    Args:
        report_id: Generated report ID.
        template_id: Source template ID.
        user_id: User who generated the report.
        execution_time_ms: Wall-clock time spent running widgets.
        total_records: Total number of rows across all widgets.
        failed_widgets: Number of widgets that recorded an error.
    """
    report_logger.info(
        f"Report generated - report_id={report_id}, template_id={template_id}, "
        f"user_id={user_id}, execution_time_ms={execution_time_ms}, "
        f"total_records={total_records}"
        + (f", failed_widgets={failed_widgets}" if failed_widgets else "")
    )


def log_template_access_denied(user_id: str, template_id: str, action: str) -> None:
    """
    Log a rejected template access.

    Args:
        user_id: User who attempted the action.
        template_id: Template ID.
        action: Attempted action (e.g., 'read', 'update', 'delete').
    """
    report_logger.warning(
        f"Template access denied - user_id={user_id}, template_id={template_id}, action={action}"
    )


def log_widget_failure(widget_id: str, data_source: str, error: str) -> None:
    """
    Log a widget whose data could not be produced.

    Args:
        widget_id: Widget ID within its template.
        data_source: Data source the widget queried.
        error: Error message recorded on the widget.
    """
    report_logger.error(
        f"Widget data failed - widget_id={widget_id}, data_source={data_source}, error={error}"
    )
