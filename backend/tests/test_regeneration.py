"""Downstream regeneration: the Celery task and the trigger that enqueues it."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from storage_import.pipeline.errors import ExternalServiceError
from storage_import.services.regeneration import CeleryRegenerationTrigger
from storage_import.tasks import regeneration_tasks
from storage_import.tasks.regeneration_tasks import regenerate_actions_for_import


def test_task_reports_completion():
    with patch.object(
        regeneration_tasks, "_generate", AsyncMock(return_value={"actions_generated": 2})
    ) as generate:
        outcome = regenerate_actions_for_import.apply(args=("rec-1", "user-1")).get()

    generate.assert_awaited_once_with("rec-1", "user-1")
    assert outcome == {"status": "completed", "result": {"actions_generated": 2}}


def test_client_error_is_not_retried():
    rejected = ExternalServiceError("actions returned 404", status_code=404, response_body="gone")

    with patch.object(regeneration_tasks, "_generate", AsyncMock(side_effect=rejected)) as generate:
        outcome = regenerate_actions_for_import.apply(args=("rec-1", "user-1")).get()

    assert generate.await_count == 1
    assert outcome == {"status": "rejected", "status_code": 404}


def test_task_is_routed_to_regeneration_queue():
    routes = regenerate_actions_for_import.app.conf.task_routes

    assert routes["storage_import.tasks.regeneration_tasks.*"] == {"queue": "regeneration"}


async def test_trigger_enqueues_task():
    task = MagicMock()
    task.delay.return_value = SimpleNamespace(id="task-42")

    await CeleryRegenerationTrigger(task).notify("rec-1", "user-1")

    task.delay.assert_called_once_with("rec-1", "user-1")


async def test_trigger_surfaces_broker_errors():
    task = MagicMock()
    task.delay.side_effect = ConnectionError("broker unreachable")

    with pytest.raises(ConnectionError):
        await CeleryRegenerationTrigger(task).notify("rec-1", "user-1")


def test_trigger_defaults_to_registered_task():
    assert CeleryRegenerationTrigger().task is regenerate_actions_for_import
