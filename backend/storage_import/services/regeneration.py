"""
CeleryRegenerationTrigger — hands action regeneration to a Celery worker.

``notify`` only enqueues; the worker owns retries and backoff, so the
import's success path never waits on the actions service.
"""

from __future__ import annotations

import asyncio

from storage_import.core.logging import get_logger

logger = get_logger(__name__)


class CeleryRegenerationTrigger:
    """Downstream trigger that enqueues ``regenerate_actions_for_import``."""

    def __init__(self, task=None) -> None:
        if task is None:
            from storage_import.tasks.regeneration_tasks import regenerate_actions_for_import

            task = regenerate_actions_for_import
        self.task = task

    async def notify(self, import_record_id: str, user_id: str) -> None:
        # delay() talks to the broker synchronously
        async_result = await asyncio.to_thread(self.task.delay, import_record_id, user_id)
        logger.info(
            "Action regeneration enqueued",
            import_record_id=import_record_id,
            task_id=getattr(async_result, "id", None),
        )
