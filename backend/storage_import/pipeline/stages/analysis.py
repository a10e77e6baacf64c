"""
AnalysisStage — AI summary, action items and sentiment for the file text.

The analysis flavour is picked from the category and, for documents,
from the file name:

    transcript                 → meeting_transcript
    document "…proposal…"      → proposal
    document "…contract…"      → contract
    document "…agreement…"     → contract
    document (anything else)   → general_document
    email                      → email_thread
    other                      → general_document
"""

from __future__ import annotations

from typing import Any

from storage_import.core.constants import AnalysisType, ContentCategory, StageName
from storage_import.core.logging import get_logger
from storage_import.pipeline.context import Content, ProcessOptions, StageResult
from storage_import.pipeline.errors import StageError
from storage_import.pipeline.ports import TextAnalyzer
from storage_import.pipeline.stage import PipelineStage

logger = get_logger(__name__)


def resolve_analysis_type(category: ContentCategory | str, file_name: str) -> AnalysisType:
    """Pick the analysis flavour for a file."""
    if category == ContentCategory.TRANSCRIPT:
        return AnalysisType.MEETING_TRANSCRIPT
    if category == ContentCategory.EMAIL:
        return AnalysisType.EMAIL_THREAD
    if category != ContentCategory.DOCUMENT:
        return AnalysisType.GENERAL_DOCUMENT

    lowered = file_name.lower()
    if "proposal" in lowered:
        return AnalysisType.PROPOSAL
    if "contract" in lowered or "agreement" in lowered:
        return AnalysisType.CONTRACT
    return AnalysisType.GENERAL_DOCUMENT


def build_analysis_metadata(content: Content, options: ProcessOptions) -> dict[str, Any]:
    """Context handed to the text analyzer alongside the raw text."""
    analysis_type = resolve_analysis_type(content.category, content.file_name)
    return {
        "analysis_type": analysis_type.value,
        "file_name": content.file_name,
        "category": content.category.value,
        "source": content.provider,
        "source_label": options.source_label,
        "deal_id": options.deal_id,
        "contact_id": options.contact_id,
        "extract_action_items": True,
        "extract_sentiment": True,
    }


class AnalysisStage(PipelineStage):
    """Run the text analyzer over the extracted text."""

    name = StageName.ANALYSIS.value
    description = "Summarise the file and pull out action items and sentiment"

    def __init__(self, analyzer: TextAnalyzer) -> None:
        self.analyzer = analyzer

    async def run(self, content: Content, options: ProcessOptions) -> StageResult:
        started = self._now()
        metadata = build_analysis_metadata(content, options)

        try:
            analysis = await self.analyzer.analyze(content.raw_text, metadata)
        except Exception as exc:
            raise StageError(
                f"Text analysis failed: {exc}",
                execution_id=options.execution_id,
                step_name=self.name,
            ) from exc

        payload = dict(analysis or {})
        # The type picked from category and file name wins over the model's guess
        payload["analysis_type"] = metadata["analysis_type"]

        logger.info(
            "Text analysis complete",
            file_id=content.file_id,
            analysis_type=payload["analysis_type"],
            action_items=len(payload.get("action_items") or []),
        )
        return self._success(started, payload)
