"""
AnthropicTextAnalyzer — LLM summary, action items and sentiment for free text.

The Anthropic client is injected, never created at import time.  Input is
capped at ANALYZER_MAX_INPUT_CHARS.  A reply that is not valid JSON yields
the default result instead of an exception; transport and API errors are
left to propagate so the calling stage reports them.
"""

from __future__ import annotations

import json
from typing import Any

from anthropic import AsyncAnthropic

from storage_import.analysis.prompts import SYSTEM_PROMPT, build_analysis_prompt
from storage_import.core.config import settings
from storage_import.core.logging import get_logger
from storage_import.core.tracing import traceable_step

logger = get_logger(__name__)


def default_analysis(metadata: dict[str, Any], error: str | None = None) -> dict[str, Any]:
    """Neutral result used when the model reply cannot be parsed."""
    result: dict[str, Any] = {
        "summary": None,
        "action_items": [],
        "sentiment": "neutral",
        "key_points": [],
        "risks": [],
        "analysis_type": metadata.get("analysis_type"),
    }
    if error:
        result["error"] = error
    return result


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        text = "\n".join(lines)
    return text.strip()


def parse_analysis(response_text: str, metadata: dict[str, Any]) -> dict[str, Any]:
    try:
        analysis = json.loads(strip_code_fences(response_text))
    except json.JSONDecodeError as exc:
        logger.warning("Analyzer returned malformed JSON", error=str(exc), preview=response_text[:300])
        return default_analysis(metadata, error=f"Malformed model output: {exc}")

    if not isinstance(analysis, dict):
        logger.warning("Analyzer returned non-object JSON", type=type(analysis).__name__)
        return default_analysis(metadata, error="Model output was not a JSON object")

    if not isinstance(analysis.get("action_items"), list):
        analysis["action_items"] = []
    analysis["analysis_type"] = metadata.get("analysis_type")
    return analysis


def _trace_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    return {key: metadata.get(key) for key in ("analysis_type", "file_name", "source_label", "deal_id")}


class AnthropicTextAnalyzer:
    """
    Text analyzer backed by Claude.

    Usage::

        analyzer = AnthropicTextAnalyzer(AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY))
        result = await analyzer.analyze(text, {"analysis_type": "proposal", "file_name": "Q3.docx"})
    """

    def __init__(
        self,
        client: AsyncAnthropic,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        max_input_chars: int | None = None,
    ) -> None:
        self.client = client
        self.model = model or settings.LLM_MODEL
        self.max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self.max_input_chars = max_input_chars or settings.ANALYZER_MAX_INPUT_CHARS

    async def analyze(self, text: str, metadata: dict[str, Any]) -> dict[str, Any]:
        truncated = len(text) > self.max_input_chars
        bounded = text[: self.max_input_chars]
        if truncated:
            logger.info(
                "Analyzer input truncated",
                original_chars=len(text),
                max_input_chars=self.max_input_chars,
            )

        response_text = await self._complete(build_analysis_prompt(bounded, metadata), metadata)
        analysis = parse_analysis(response_text, metadata)
        analysis["input_truncated"] = truncated

        logger.info(
            "Analyzer response parsed",
            model=self.model,
            analysis_type=analysis.get("analysis_type"),
            degraded="error" in analysis,
        )
        return analysis

    @traceable_step(
        "analyze_text",
        run_type="llm",
        tags=["analysis", "anthropic"],
        metadata_from=lambda self, prompt, metadata: _trace_metadata(metadata),
    )
    async def _complete(self, prompt: str, metadata: dict[str, Any]) -> str:
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
