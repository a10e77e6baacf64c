"""
Celery tasks — downstream action regeneration after a processed import.

Enqueued by CeleryRegenerationTrigger.  Server and transport failures
are retried with exponential backoff; a 4xx from the actions service is
final and only logged.
"""

import asyncio

import httpx
import structlog

from storage_import.analysis.actions import ActionsServiceClient
from storage_import.pipeline.errors import ExternalServiceError
from storage_import.tasks import celery_app

logger = structlog.get_logger("tasks.regeneration")

REGENERATE_TASK_NAME = "storage_import.tasks.regeneration_tasks.regenerate_actions_for_import"


async def _generate(import_record_id: str, user_id: str) -> dict:
    return await ActionsServiceClient().generate_for_import(import_record_id, user_id)


@celery_app.task(
    bind=True,
    name=REGENERATE_TASK_NAME,
    max_retries=5,
    default_retry_delay=30,
    autoretry_for=(ExternalServiceError, httpx.HTTPError, ConnectionError, TimeoutError),
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True,
)
def regenerate_actions_for_import(self, import_record_id: str, user_id: str):
    """
    Ask the actions service to regenerate next actions for one import:
    1. POST /imports/{id}/actions/generate
    2. Retry server / network failures with backoff
    3. Give up quietly on client errors (record gone, deal deleted)
    """
    task_log = logger.bind(
        task_id=self.request.id,
        import_record_id=import_record_id,
        user_id=user_id,
        attempt=self.request.retries + 1,
    )
    task_log.info("Action regeneration started")

    try:
        result = asyncio.run(_generate(import_record_id, user_id))
    except ExternalServiceError as exc:
        if exc.status_code is not None and 400 <= exc.status_code < 500:
            task_log.warning(
                "Action regeneration rejected",
                status_code=exc.status_code,
                response_body=exc.response_body,
            )
            return {"status": "rejected", "status_code": exc.status_code}
        task_log.warning("Action regeneration failed, will retry", error=str(exc))
        raise

    task_log.info("Action regeneration complete", actions=result.get("actions_generated"))
    return {"status": "completed", "result": result}
