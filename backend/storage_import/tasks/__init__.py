"""
Celery application factory.
"""

from celery import Celery, signals

from storage_import.core.config import settings
from storage_import.core.logging import setup_logging

celery_app = Celery("storage_import")
celery_app.config_from_object("celeryconfig")

# Auto-discover tasks in these modules
celery_app.autodiscover_tasks(
    ["storage_import.tasks.regeneration_tasks"],
    related_name=None,
)


@signals.setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    """Route worker logs through structlog instead of Celery's own handlers."""
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
