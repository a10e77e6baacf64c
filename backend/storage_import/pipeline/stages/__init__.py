"""Analysis stages a storage file is fanned out to."""

from storage_import.pipeline.stages.analysis import AnalysisStage
from storage_import.pipeline.stages.health_scoring import HealthScoringStage

__all__ = ["AnalysisStage", "HealthScoringStage"]
