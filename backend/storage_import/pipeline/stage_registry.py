"""
StageRegistry — maps content categories to the stages run by default.

    transcript → analysis, health_scoring
    document   → analysis, health_scoring
    email      → analysis
    other      → document default

Stages are registered once at startup.  Callers may override the stage
list per import; an unknown name is a configuration error and raises
UnknownStageError before anything is persisted.

To add a new stage:
    1. Subclass PipelineStage in pipeline/stages/
    2. Add its name to StageName and to CATEGORY_STAGES below
    3. Register an instance in build_default_registry()
"""

from __future__ import annotations

from storage_import.core.constants import ContentCategory, StageName
from storage_import.core.logging import get_logger
from storage_import.pipeline.errors import UnknownStageError
from storage_import.pipeline.ports import HealthScoringService, TextAnalyzer
from storage_import.pipeline.stage import PipelineStage
from storage_import.pipeline.stages import AnalysisStage, HealthScoringStage

logger = get_logger(__name__)

CATEGORY_STAGES: dict[ContentCategory, tuple[str, ...]] = {
    ContentCategory.TRANSCRIPT: (StageName.ANALYSIS.value, StageName.HEALTH_SCORING.value),
    ContentCategory.DOCUMENT: (StageName.ANALYSIS.value, StageName.HEALTH_SCORING.value),
    ContentCategory.EMAIL: (StageName.ANALYSIS.value,),
}

FALLBACK_CATEGORY = ContentCategory.DOCUMENT


class StageRegistry:
    """Closed set of named stages plus the category defaults."""

    def __init__(self, stages: list[PipelineStage] | None = None) -> None:
        self._stages: dict[str, PipelineStage] = {}
        for stage in stages or []:
            self.register(stage)

    def register(self, stage: PipelineStage) -> None:
        if stage.name in self._stages:
            raise ValueError(f"Stage {stage.name!r} is already registered")
        self._stages[stage.name] = stage

    @property
    def names(self) -> list[str]:
        return list(self._stages)

    def get(self, name: str) -> PipelineStage:
        try:
            return self._stages[name]
        except KeyError:
            raise UnknownStageError(
                f"Unknown pipeline stage: {name!r}",
                step_name=name,
                details={"available": self.names},
            ) from None

    def default_stages(self, category: ContentCategory | str | None) -> list[str]:
        """Default stage names for a category; unknown categories use the document set."""
        try:
            key = ContentCategory(category) if category is not None else FALLBACK_CATEGORY
        except ValueError:
            key = FALLBACK_CATEGORY
        return list(CATEGORY_STAGES.get(key, CATEGORY_STAGES[FALLBACK_CATEGORY]))

    def resolve(
        self,
        category: ContentCategory | str | None,
        requested: list[str] | None = None,
    ) -> list[str]:
        """
        Validate and order the stages to run for one import.

        Returns names in registration order, without repeats.  Raises
        UnknownStageError for any name that is not registered.
        """
        wanted = list(requested) if requested else self.default_stages(category)
        for name in wanted:
            self.get(name)

        ordered = [name for name in self._stages if name in wanted]
        logger.debug("Stages resolved", category=str(category), requested=requested, stages=ordered)
        return ordered


def build_default_registry(
    analyzer: TextAnalyzer,
    health_service: HealthScoringService,
) -> StageRegistry:
    """Registry with the built-in stages wired to their collaborators."""
    return StageRegistry([
        AnalysisStage(analyzer),
        HealthScoringStage(health_service),
    ])
