"""
StageRunner — concurrent settle-all fan-out over the selected stages.

Every stage starts at once and the runner waits for all of them.  Each
stage runs inside its own failure boundary: an exception (or a timeout,
when STAGE_TIMEOUT_SECONDS is set) becomes a failed StageResult for
that stage only and never reaches its siblings.
"""

from __future__ import annotations

import asyncio
import time

from storage_import.core.config import settings
from storage_import.core.logging import get_logger
from storage_import.pipeline.context import Content, ProcessOptions, StageResult
from storage_import.pipeline.stage import PipelineStage
from storage_import.pipeline.stage_registry import StageRegistry

logger = get_logger(__name__)


class StageRunner:
    """
    Runs named stages from a StageRegistry against one Content.

    Usage::

        runner = StageRunner(registry)
        results = await runner.run(["analysis", "health_scoring"], content, options)
        results["analysis"].success
    """

    def __init__(self, registry: StageRegistry, stage_timeout: float | None = None) -> None:
        self.registry = registry
        if stage_timeout is None:
            stage_timeout = settings.STAGE_TIMEOUT_SECONDS
        self.stage_timeout = stage_timeout if stage_timeout and stage_timeout > 0 else None

    async def run(
        self,
        stage_names: list[str],
        content: Content,
        options: ProcessOptions,
    ) -> dict[str, StageResult]:
        """Run every stage concurrently; return results keyed by name in input order."""
        stages = [self.registry.get(name) for name in stage_names]

        log = logger.bind(
            execution_id=options.execution_id,
            file_id=content.file_id,
            stages=stage_names,
        )
        log.info("Stage fan-out started")

        outcomes = await asyncio.gather(
            *(self._run_isolated(stage, content, options) for stage in stages)
        )
        results = {result.stage_name: result for result in outcomes}

        log.info(
            "Stage fan-out finished",
            succeeded=[n for n, r in results.items() if r.usable],
            failed=[n for n, r in results.items() if not r.success and not r.skipped],
            skipped=[n for n, r in results.items() if r.skipped],
        )
        return results

    async def _run_isolated(
        self,
        stage: PipelineStage,
        content: Content,
        options: ProcessOptions,
    ) -> StageResult:
        """Failure boundary around a single stage."""
        stage_log = logger.bind(
            execution_id=options.execution_id,
            stage_name=stage.name,
            stage_description=stage.description,
        )
        stage_log.info("Stage started")
        started = time.perf_counter()

        try:
            if self.stage_timeout is not None:
                result = await asyncio.wait_for(stage.run(content, options), self.stage_timeout)
            else:
                result = await stage.run(content, options)
        except asyncio.TimeoutError:
            duration_ms = int((time.perf_counter() - started) * 1000)
            error = f"Stage timed out after {self.stage_timeout}s"
            stage_log.error("Stage timed out", duration_ms=duration_ms)
            return StageResult(
                stage_name=stage.name, success=False, error=error, duration_ms=duration_ms
            )
        except Exception as exc:
            duration_ms = int((time.perf_counter() - started) * 1000)
            stage_log.error(
                "Stage failed",
                error=str(exc),
                error_type=type(exc).__name__,
                duration_ms=duration_ms,
                exc_info=True,
            )
            return StageResult(
                stage_name=stage.name, success=False, error=str(exc), duration_ms=duration_ms
            )

        if result.skipped:
            stage_log.info("Stage skipped", reason=result.skip_reason)
        elif result.success:
            stage_log.info("Stage completed", duration_ms=result.duration_ms)
        else:
            stage_log.warning("Stage reported failure", error=result.error)
        return result
