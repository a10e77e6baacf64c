"""
StorageFileProcessor — imports one cloud-storage file end to end.

    duplicate check → extract content → create import record
        → fan out stages → aggregate insights → mark processed
        → hand off downstream regeneration

Responsibilities:
    - Refuse a second import of the same (user, provider, file, deal)
      unless forced, before anything is downloaded
    - Create the import record only after extraction succeeded
    - Isolate stage failures; only a runner-level fault fails the record
    - Skip all persistence and side effects in dry-run mode
    - Never let the downstream trigger affect the result
"""

from __future__ import annotations

from dataclasses import replace

from storage_import.core.logging import get_logger
from storage_import.pipeline.context import (
    ProcessOptions,
    ProcessResult,
    build_source_label,
)
from storage_import.pipeline.errors import (
    DownstreamTriggerError,
    DuplicateImportError,
    ExtractionError,
    PipelineRunError,
)
from storage_import.pipeline.insights import aggregate_insights
from storage_import.pipeline.ports import (
    ContentSourceResolver,
    DownstreamTrigger,
    DuplicateChecker,
    ImportRecordStore,
)
from storage_import.pipeline.runner import StageRunner
from storage_import.pipeline.stage_registry import StageRegistry

logger = get_logger(__name__)


class StorageFileProcessor:
    """
    Orchestrates the import of a single storage file.

    All collaborators are injected so the processor holds no global state::

        processor = StorageFileProcessor(
            sources=provider_registry,
            duplicate_checker=record_store,
            record_store=record_store,
            registry=stage_registry,
            trigger=CeleryRegenerationTrigger(),
        )
        result = await processor.process_storage_file(
            "user-1", "onedrive", "01ABC", ProcessOptions(deal_id="deal-9")
        )
    """

    def __init__(
        self,
        *,
        sources: ContentSourceResolver,
        duplicate_checker: DuplicateChecker,
        record_store: ImportRecordStore,
        registry: StageRegistry,
        trigger: DownstreamTrigger | None = None,
        runner: StageRunner | None = None,
    ) -> None:
        self.sources = sources
        self.duplicate_checker = duplicate_checker
        self.record_store = record_store
        self.registry = registry
        self.trigger = trigger
        self.runner = runner or StageRunner(registry)

    async def process_storage_file(
        self,
        user_id: str,
        provider_id: str,
        file_id: str,
        options: ProcessOptions | None = None,
    ) -> ProcessResult:
        # Work on a copy; callers may reuse one options object across files
        options = replace(options or ProcessOptions(), user_id=user_id)

        log = logger.bind(
            execution_id=options.execution_id,
            user_id=user_id,
            provider=provider_id,
            file_id=file_id,
            deal_id=options.deal_id,
            dry_run=options.dry_run,
            force=options.force,
        )
        log.info("Storage file import started", pipelines=options.pipelines)

        source = self.sources.get(provider_id)

        # An explicit override is validated before any I/O
        if options.pipelines:
            self.registry.resolve(None, options.pipelines)

        # ── Duplicate check ───────────────────────────
        if not options.dry_run and not options.force:
            check = await self.duplicate_checker.check_duplicate(
                user_id, provider_id, file_id, options.deal_id
            )
            if check.exists:
                log.info("Duplicate import rejected", existing_record_id=(check.record or {}).get("id"))
                raise DuplicateImportError(
                    check.message or "This file has already been imported",
                    existing_record=check.record,
                    execution_id=options.execution_id,
                )

        # ── Extract content ───────────────────────────
        try:
            content = await source.extract_file_content(user_id, file_id)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(
                f"Failed to extract content from {provider_id} file {file_id}: {exc}",
                execution_id=options.execution_id,
            ) from exc

        stage_names = self.registry.resolve(content.category, options.pipelines)
        options = replace(options, source_label=build_source_label(content.provider, content.file_name))
        log = log.bind(category=content.category.value, stages=stage_names)
        log.info("Content extracted", character_count=content.character_count)

        # ── Create import record ──────────────────────
        record = None
        if not options.dry_run:
            record = await self.record_store.create_import_record(
                content.file_ref,
                user_id,
                options.deal_id,
                options.contact_id,
                force=options.force,
            )
            log = log.bind(import_record_id=record.id)
            log.info("Import record created", status=record.status)

        # ── Fan out / fan in ──────────────────────────
        try:
            results = await self.runner.run(stage_names, content, options)
            insights = aggregate_insights(stage_names, results)
        except Exception as exc:
            error = PipelineRunError(
                f"Pipeline run failed: {exc}",
                execution_id=options.execution_id,
                details={"stages": stage_names},
            )
            log.error("Pipeline run failed", error=str(exc), exc_info=True)
            if record is not None:
                await self._mark_failed(record.id, error.message)
            raise error from exc

        # ── Commit ────────────────────────────────────
        if record is not None:
            await self.record_store.mark_processed(record.id, insights)
            log.info("Import record processed", insight_keys=sorted(insights))

            if options.deal_id:
                await self._notify_downstream(record.id, user_id)

        log.info("Storage file import finished")
        return ProcessResult(
            content=content,
            source_label=options.source_label,
            pipelines_run=stage_names,
            results=results,
            import_record_id=record.id if record is not None else None,
            insights=insights,
        )

    async def _mark_failed(self, import_record_id: str, message: str) -> None:
        """Best-effort failure write; the run error is what the caller sees."""
        try:
            await self.record_store.mark_failed(import_record_id, message)
        except Exception as exc:
            logger.error(
                "Could not mark import record failed",
                import_record_id=import_record_id,
                error=str(exc),
                exc_info=True,
            )

    async def _notify_downstream(self, import_record_id: str, user_id: str) -> None:
        """Hand off action regeneration; failures are logged and swallowed."""
        if self.trigger is None:
            return
        try:
            await self.trigger.notify(import_record_id, user_id)
        except Exception as exc:
            logger.warning(
                "Downstream trigger failed",
                code=DownstreamTriggerError.code,
                import_record_id=import_record_id,
                error=str(exc),
                exc_info=True,
            )
