"""
Reduce per-stage results into the flat insights stored on the import record.

Only successful, non-skipped stages contribute.  A field whose source
value is missing is left out entirely rather than stored as None.
"""

from __future__ import annotations

from typing import Any

from storage_import.core.constants import StageName
from storage_import.pipeline.context import StageResult

# (insights key, payload key) per stage
ANALYSIS_FIELDS: tuple[tuple[str, str], ...] = (
    ("ai_summary", "summary"),
    ("ai_action_items", "action_items"),
    ("ai_sentiment", "sentiment"),
    ("ai_analysis_type", "analysis_type"),
)

HEALTH_FIELDS: tuple[tuple[str, str], ...] = (
    ("health_signals", "signals"),
    ("signals_applied", "signals_applied"),
    ("competitors_found", "competitors"),
    ("competitors_detected", "competitors_detected"),
    ("health_score_after", "health_score"),
    ("health_status_after", "health_status"),
)

STAGE_FIELDS: dict[str, tuple[tuple[str, str], ...]] = {
    StageName.ANALYSIS.value: ANALYSIS_FIELDS,
    StageName.HEALTH_SCORING.value: HEALTH_FIELDS,
}


def aggregate_insights(
    stage_names: list[str],
    results: dict[str, StageResult],
) -> dict[str, Any]:
    insights: dict[str, Any] = {"pipelines_run": list(stage_names)}

    for name in stage_names:
        result = results.get(name)
        if result is None or not result.usable:
            continue
        for insight_key, payload_key in STAGE_FIELDS.get(name, ()):
            value = result.payload.get(payload_key)
            if value is not None:
                insights[insight_key] = value

    return insights
