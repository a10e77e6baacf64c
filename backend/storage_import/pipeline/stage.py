"""
PipelineStage — abstract base class for analysis stages.

Every stage receives the same extracted Content and options and returns
a StageResult.  The runner records timing and turns exceptions into
failed results, so stages only implement the business logic.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

from storage_import.pipeline.context import Content, ProcessOptions, StageResult


class PipelineStage(ABC):
    """
    Base class for every stage.

    Subclasses MUST implement:
        - name (str)                 — registry key, e.g. "analysis"
        - description (str)          — human-readable label for logs
        - run(content, options)      — the actual business logic
    """

    name: str = "unnamed_stage"
    description: str = "No description"

    @abstractmethod
    async def run(self, content: Content, options: ProcessOptions) -> StageResult:
        """
        Run the stage against extracted content.  Must return a StageResult.

        Raising is allowed; the runner converts it into a failed result.
        """
        ...

    # ─── Helpers available to all stages ───────────────

    def _success(self, started: float, payload: dict[str, Any]) -> StageResult:
        return StageResult(
            stage_name=self.name,
            success=True,
            payload=payload,
            duration_ms=self._elapsed_ms(started),
        )

    def _skipped(self, started: float, reason: str) -> StageResult:
        """A skip is reported as not-successful but carries no error."""
        return StageResult(
            stage_name=self.name,
            success=False,
            skipped=True,
            skip_reason=reason,
            duration_ms=self._elapsed_ms(started),
        )

    def _now(self) -> float:
        return time.perf_counter()

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)
