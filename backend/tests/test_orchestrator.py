"""End-to-end behaviour of StorageFileProcessor over a real SQLite store."""

from unittest.mock import AsyncMock

import pytest
from storage_import.core.constants import ContentCategory, ImportStatus
from storage_import.pipeline.context import ProcessOptions
from storage_import.pipeline.errors import (
    DuplicateImportError,
    ExtractionError,
    PipelineRunError,
    UnknownProviderError,
    UnknownStageError,
)
from storage_import.pipeline.orchestrator import StorageFileProcessor
from storage_import.pipeline.runner import StageRunner
from storage_import.storage.factory import ProviderRegistry
from tests.helpers import count_records, load_record, make_content


# ── Idempotency / forced re-import ──────────────────────


async def test_second_import_is_rejected_before_download(processor, source, session_factory):
    first = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    with pytest.raises(DuplicateImportError) as exc_info:
        await processor.process_storage_file(
            "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
        )

    assert exc_info.value.code == "DUPLICATE_IMPORT"
    assert exc_info.value.existing_record["id"] == first.import_record_id
    assert "already imported" in exc_info.value.message
    assert source.extract_file_content.await_count == 1
    assert await count_records(session_factory) == 1

    record = await load_record(session_factory, first.import_record_id)
    assert record.status == ImportStatus.PROCESSED
    assert record.ai_summary == "S"


async def test_same_file_for_another_deal_is_a_new_import(processor, session_factory):
    await processor.process_storage_file("user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9"))
    await processor.process_storage_file("user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-10"))

    assert await count_records(session_factory) == 2


async def test_no_deal_imports_are_deduplicated_too(processor, session_factory):
    await processor.process_storage_file("user-1", "onedrive", "file-1")

    with pytest.raises(DuplicateImportError):
        await processor.process_storage_file("user-1", "onedrive", "file-1")

    assert await count_records(session_factory) == 1


async def test_forced_reimport_replaces_previous_insights(processor, analyzer, session_factory):
    first = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    analyzer.analyze.return_value = {"summary": "Updated", "sentiment": "neutral"}
    second = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9", force=True)
    )

    assert second.import_record_id == first.import_record_id
    assert await count_records(session_factory) == 1

    record = await load_record(session_factory, second.import_record_id)
    assert record.status == ImportStatus.PROCESSED
    assert record.ai_summary == "Updated"
    assert record.ai_sentiment == "neutral"
    assert "ai_action_items" not in record.insights


async def test_force_without_previous_import_creates_record(processor, session_factory):
    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(force=True)
    )

    assert result.import_record_id is not None
    assert await count_records(session_factory) == 1


# ── Stage isolation ────────────────────────────────────


async def test_health_failure_does_not_affect_analysis(processor, health_service, session_factory):
    health_service.apply_signals.side_effect = RuntimeError("health engine down")

    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    analysis = result.results["analysis"]
    health = result.results["health_scoring"]
    assert analysis.success is True
    assert analysis.payload["summary"] == "S"
    assert health.success is False
    assert health.skipped is False
    assert "health engine down" in health.error
    health_service.detect_competitors.assert_not_awaited()

    record = await load_record(session_factory, result.import_record_id)
    assert record.status == ImportStatus.PROCESSED
    assert record.ai_summary == "S"
    assert "health_score_after" not in record.insights


async def test_analysis_failure_keeps_health_results(processor, analyzer, session_factory):
    analyzer.analyze.side_effect = RuntimeError("model overloaded")

    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    assert result.results["analysis"].success is False
    assert result.results["health_scoring"].success is True
    record = await load_record(session_factory, result.import_record_id)
    assert record.status == ImportStatus.PROCESSED
    assert record.health_score_after == 72
    assert record.ai_summary is None


async def test_missing_deal_skips_health_scoring(processor, health_service, trigger):
    result = await processor.process_storage_file("user-1", "onedrive", "file-1")

    health = result.results["health_scoring"]
    assert health.success is False
    assert health.skipped is True
    assert health.error is None
    assert health.skip_reason
    assert result.results["analysis"].success is True
    health_service.apply_signals.assert_not_awaited()
    trigger.notify.assert_not_awaited()

    serialised = result.to_dict()["results"]["health_scoring"]
    assert serialised["skipped"] is True
    assert "error" not in serialised


# ── Dry run ─────────────────────────────────────────────


async def test_dry_run_persists_nothing(processor, store, trigger, session_factory):
    store.check_duplicate = AsyncMock(wraps=store.check_duplicate)

    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9", dry_run=True)
    )

    assert result.import_record_id is None
    assert result.results["analysis"].success is True
    assert result.results["health_scoring"].success is True
    assert result.to_dict()["file"]["import_record_id"] is None
    assert await count_records(session_factory) == 0
    store.check_duplicate.assert_not_awaited()
    trigger.notify.assert_not_awaited()


async def test_dry_run_ignores_existing_import(processor, session_factory):
    await processor.process_storage_file("user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9"))

    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9", dry_run=True)
    )

    assert result.import_record_id is None
    assert await count_records(session_factory) == 1


# ── Stage selection ─────────────────────────────────────


async def test_email_runs_analysis_only(processor, source, health_service):
    source.extract_file_content.return_value = make_content(
        file_name="Re: pricing.eml", category=ContentCategory.EMAIL
    )

    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    assert result.pipelines_run == ["analysis"]
    assert list(result.results) == ["analysis"]
    health_service.apply_signals.assert_not_awaited()


async def test_other_category_uses_document_stages(processor, source):
    source.extract_file_content.return_value = make_content(
        file_name="notes.log", category=ContentCategory.OTHER
    )

    result = await processor.process_storage_file("user-1", "onedrive", "file-1")

    assert result.pipelines_run == ["analysis", "health_scoring"]


async def test_pipeline_override_is_honoured(processor, analyzer):
    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1",
        ProcessOptions(deal_id="deal-9", pipelines=["health_scoring"]),
    )

    assert result.pipelines_run == ["health_scoring"]
    analyzer.analyze.assert_not_awaited()


async def test_unknown_stage_is_rejected_before_any_io(processor, source, session_factory):
    with pytest.raises(UnknownStageError):
        await processor.process_storage_file(
            "user-1", "onedrive", "file-1", ProcessOptions(pipelines=["analysis", "sentiment"])
        )

    source.extract_file_content.assert_not_awaited()
    assert await count_records(session_factory) == 0


async def test_unknown_provider(processor):
    with pytest.raises(UnknownProviderError):
        await processor.process_storage_file("user-1", "dropbox", "file-1")


# ── Aggregation ─────────────────────────────────────────


async def test_insights_are_persisted(processor, session_factory):
    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9", contact_id="contact-3")
    )

    assert result.insights["ai_summary"] == "S"
    assert result.insights["health_score_after"] == 72
    assert result.insights["health_status_after"] == "green"
    assert result.insights["competitors_found"] == [{"name": "Acme"}]
    assert result.insights["pipelines_run"] == ["analysis", "health_scoring"]

    record = await load_record(session_factory, result.import_record_id)
    assert record.ai_summary == "S"
    assert record.health_score_after == 72
    assert record.contact_id == "contact-3"
    assert record.source_label == "OneDrive: Q3 Proposal.docx"
    assert record.processed_at is not None


async def test_skipped_health_leaves_score_absent(processor):
    result = await processor.process_storage_file("user-1", "onedrive", "file-1")

    assert result.insights["ai_summary"] == "S"
    assert "health_score_after" not in result.insights


async def test_analyzer_receives_source_label(processor, analyzer):
    await processor.process_storage_file("user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9"))

    _, metadata = analyzer.analyze.await_args.args
    assert metadata["source_label"] == "OneDrive: Q3 Proposal.docx"
    assert metadata["analysis_type"] == "proposal"


# ── Failures outside the stages ─────────────────────────


async def test_extraction_failure_creates_no_record(processor, source, session_factory):
    source.extract_file_content.side_effect = RuntimeError("download interrupted")

    with pytest.raises(ExtractionError) as exc_info:
        await processor.process_storage_file("user-1", "onedrive", "file-1")

    assert exc_info.value.code == "EXTRACTION_ERROR"
    assert "download interrupted" in exc_info.value.message
    assert await count_records(session_factory) == 0


async def test_runner_fault_marks_record_failed(source, store, registry, trigger, session_factory):
    runner = StageRunner(registry)
    runner.run = AsyncMock(side_effect=RuntimeError("event loop closed"))
    processor = StorageFileProcessor(
        sources=ProviderRegistry([source]),
        duplicate_checker=store,
        record_store=store,
        registry=registry,
        trigger=trigger,
        runner=runner,
    )

    with pytest.raises(PipelineRunError):
        await processor.process_storage_file("user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9"))

    records = await store.list_for_deal("user-1", "deal-9")
    assert len(records) == 1
    assert records[0]["status"] == ImportStatus.FAILED
    assert "event loop closed" in records[0]["error_message"]
    assert records[0]["insights"] is None
    trigger.notify.assert_not_awaited()


# ── Downstream trigger ──────────────────────────────────


async def test_trigger_notified_after_processing(processor, trigger):
    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    trigger.notify.assert_awaited_once_with(result.import_record_id, "user-1")


async def test_trigger_failure_does_not_fail_import(processor, trigger, session_factory):
    trigger.notify.side_effect = ConnectionError("broker unreachable")

    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    record = await load_record(session_factory, result.import_record_id)
    assert record.status == ImportStatus.PROCESSED


async def test_model_cannot_override_analysis_type(processor, analyzer, session_factory):
    analyzer.analyze.return_value = {"summary": "S", "analysis_type": "email_thread"}

    result = await processor.process_storage_file(
        "user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9")
    )

    assert result.results["analysis"].payload["analysis_type"] == "proposal"
    assert result.insights["ai_analysis_type"] == "proposal"
    record = await load_record(session_factory, result.import_record_id)
    assert record.ai_analysis_type == "proposal"


async def test_caller_options_are_left_untouched(processor, source, analyzer):
    options = ProcessOptions(deal_id="deal-9")
    source.extract_file_content.side_effect = [
        make_content(file_id="file-1", file_name="Q3 Proposal.docx"),
        make_content(file_id="file-2", file_name="MSA.docx"),
    ]

    await processor.process_storage_file("user-1", "onedrive", "file-1", options)
    await processor.process_storage_file("user-2", "onedrive", "file-2", options)

    assert options.user_id is None
    assert options.source_label is None
    _, metadata = analyzer.analyze.await_args.args
    assert metadata["source_label"] == "OneDrive: MSA.docx"


async def test_failure_write_error_keeps_run_error(source, store, registry, trigger):
    runner = StageRunner(registry)
    runner.run = AsyncMock(side_effect=RuntimeError("event loop closed"))
    store.mark_failed = AsyncMock(side_effect=RuntimeError("database gone"))
    processor = StorageFileProcessor(
        sources=ProviderRegistry([source]),
        duplicate_checker=store,
        record_store=store,
        registry=registry,
        trigger=trigger,
        runner=runner,
    )

    with pytest.raises(PipelineRunError) as exc_info:
        await processor.process_storage_file("user-1", "onedrive", "file-1", ProcessOptions(deal_id="deal-9"))

    assert "event loop closed" in exc_info.value.message
    store.mark_failed.assert_awaited_once()
