"""HealthScoringStage on its own: call order, skip and failure."""

from unittest.mock import AsyncMock, MagicMock, call

import pytest
from storage_import.pipeline.context import ProcessOptions
from storage_import.pipeline.errors import StageError
from storage_import.pipeline.runner import StageRunner
from storage_import.pipeline.stage_registry import StageRegistry
from storage_import.pipeline.stages import HealthScoringStage

TEXT = "We agreed to send the revised pricing by Friday."


@pytest.fixture
def calls(health_service):
    """Parent mock recording the health calls in the order they happen."""
    parent = MagicMock()
    parent.attach_mock(health_service.apply_signals, "apply_signals")
    parent.attach_mock(health_service.detect_competitors, "detect_competitors")
    parent.attach_mock(health_service.score_deal, "score_deal")
    return parent


async def test_calls_run_in_order(health_service, calls, content):
    stage = HealthScoringStage(health_service)

    result = await stage.run(content, ProcessOptions(deal_id="deal-9", user_id="user-1"))

    assert calls.mock_calls == [
        call.apply_signals("deal-9", TEXT, "onedrive_document", "user-1"),
        call.detect_competitors("deal-9", "user-1", TEXT),
        call.score_deal("deal-9", "user-1"),
    ]
    assert result.success is True
    assert result.payload["health_score"] == 72
    assert result.payload["competitors_detected"] == 1


async def test_later_calls_wait_for_earlier_ones(health_service, content):
    in_flight = []

    async def detect(*args):
        in_flight.append("detect")
        return []

    async def apply(*args):
        in_flight.append("apply")
        return []

    health_service.apply_signals = AsyncMock(side_effect=apply)
    health_service.detect_competitors = AsyncMock(side_effect=detect)

    await HealthScoringStage(health_service).run(content, ProcessOptions(deal_id="deal-9"))

    assert in_flight == ["apply", "detect"]


async def test_signal_failure_stops_the_chain(health_service, content):
    health_service.apply_signals.side_effect = RuntimeError("health engine down")
    stage = HealthScoringStage(health_service)

    with pytest.raises(StageError) as exc_info:
        await stage.run(content, ProcessOptions(deal_id="deal-9"))

    assert exc_info.value.step_name == "health_scoring"
    health_service.detect_competitors.assert_not_awaited()
    health_service.score_deal.assert_not_awaited()


async def test_signal_failure_reported_as_failed_result(health_service, content):
    health_service.apply_signals.side_effect = RuntimeError("health engine down")
    registry = StageRegistry([HealthScoringStage(health_service)])

    results = await StageRunner(registry, stage_timeout=0).run(
        ["health_scoring"], content, ProcessOptions(deal_id="deal-9")
    )

    result = results["health_scoring"]
    assert result.success is False
    assert result.skipped is False
    assert "health engine down" in result.error
    health_service.detect_competitors.assert_not_awaited()
    health_service.score_deal.assert_not_awaited()


async def test_no_deal_is_a_skip(health_service, content):
    result = await HealthScoringStage(health_service).run(content, ProcessOptions())

    assert result.skipped is True
    assert result.success is False
    assert result.error is None
    health_service.apply_signals.assert_not_awaited()
