"""
HealthScoringStage — feed the file text into the deal-health engine.

Three dependent calls, strictly in order:

    apply_signals → detect_competitors → score_deal

Skipped (not failed) when the import has no deal.
"""

from __future__ import annotations

from storage_import.core.constants import StageName
from storage_import.core.logging import get_logger
from storage_import.pipeline.context import Content, ProcessOptions, StageResult
from storage_import.pipeline.errors import StageError
from storage_import.pipeline.ports import HealthScoringService
from storage_import.pipeline.stage import PipelineStage

logger = get_logger(__name__)

NO_DEAL_REASON = "No deal associated with this import"


class HealthScoringStage(PipelineStage):
    """Apply health signals, detect competitors, then rescore the deal."""

    name = StageName.HEALTH_SCORING.value
    description = "Update the deal's health signals, competitors and score"

    def __init__(self, health_service: HealthScoringService) -> None:
        self.health_service = health_service

    async def run(self, content: Content, options: ProcessOptions) -> StageResult:
        started = self._now()

        if not options.deal_id:
            logger.info("Health scoring skipped", file_id=content.file_id, reason=NO_DEAL_REASON)
            return self._skipped(started, NO_DEAL_REASON)

        deal_id = options.deal_id
        user_id = options.user_id or ""
        source_type = f"{content.provider}_{content.category.value}"

        try:
            signals = await self.health_service.apply_signals(
                deal_id, content.raw_text, source_type, user_id
            )
            competitors = await self.health_service.detect_competitors(
                deal_id, user_id, content.raw_text
            )
            score = await self.health_service.score_deal(deal_id, user_id)
        except Exception as exc:
            raise StageError(
                f"Health scoring failed: {exc}",
                execution_id=options.execution_id,
                step_name=self.name,
                details={"deal_id": deal_id},
            ) from exc

        signals = signals or []
        competitors = competitors or []
        score = score or {}

        logger.info(
            "Health scoring complete",
            deal_id=deal_id,
            signals_applied=len(signals),
            competitors_detected=len(competitors),
            health_score=score.get("score"),
        )

        return self._success(started, {
            "signals_applied": len(signals),
            "signals": signals,
            "competitors_detected": len(competitors),
            "competitors": competitors,
            "health_score": score.get("score"),
            "health_status": score.get("health"),
        })
