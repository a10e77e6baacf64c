"""
Cloud-storage import endpoints — browse provider files, import them into
the pipeline, and manage import records.
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storage_import.api.deps import (
    get_current_user_id,
    get_processor,
    get_provider_registry,
    get_record_store,
)
from storage_import.api.schemas.storage import (
    BatchItemResult,
    BatchProcessRequest,
    BatchProcessResponse,
    DuplicateCheckResponse,
    ErrorDetail,
    ProcessFileRequest,
)
from storage_import.core.config import settings
from storage_import.core.constants import BatchItemStatus
from storage_import.core.logging import get_logger
from storage_import.pipeline.context import ProcessOptions
from storage_import.pipeline.errors import (
    DuplicateImportError,
    ExternalServiceError,
    ExtractionError,
    FileTooLargeError,
    ImportRecordNotFoundError,
    PipelineError,
    UnknownProviderError,
    UnknownStageError,
)
from storage_import.pipeline.orchestrator import StorageFileProcessor
from storage_import.services.import_records import SqlImportRecordStore
from storage_import.storage.factory import ProviderRegistry

logger = get_logger(__name__)

router = APIRouter(prefix="/storage", tags=["Storage"])

# Most specific first: subclasses before their parents
ERROR_STATUS: list[tuple[type[PipelineError], int]] = [
    (DuplicateImportError, status.HTTP_409_CONFLICT),
    (FileTooLargeError, status.HTTP_413_CONTENT_TOO_LARGE),
    (UnknownProviderError, status.HTTP_404_NOT_FOUND),
    (ImportRecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (UnknownStageError, status.HTTP_400_BAD_REQUEST),
    (ExtractionError, status.HTTP_502_BAD_GATEWAY),
    (ExternalServiceError, status.HTTP_502_BAD_GATEWAY),
]


def to_http_error(exc: PipelineError) -> HTTPException:
    """Map a pipeline exception to an HTTP error carrying its code."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for exc_type, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            status_code = code
            break

    detail = ErrorDetail(
        code=exc.code,
        message=exc.message,
        existing_record=exc.existing_record if isinstance(exc, DuplicateImportError) else None,
    )
    return HTTPException(status_code=status_code, detail=detail.model_dump(exclude_none=True))


def _options(body: ProcessFileRequest) -> ProcessOptions:
    return ProcessOptions(
        deal_id=body.deal_id,
        contact_id=body.contact_id,
        pipelines=body.pipelines,
        dry_run=body.dry_run,
        force=body.force,
    )


# ─── Providers ────────────────────────────────────────────
@router.get("/providers")
async def list_providers(
    user_id: str = Depends(get_current_user_id),
    providers: ProviderRegistry = Depends(get_provider_registry),
) -> dict[str, Any]:
    """Registered providers with the caller's connection status."""
    registered = providers.all()
    statuses = await asyncio.gather(*(p.check_connection(user_id) for p in registered))
    return {
        "providers": [
            {
                "id": provider.provider_id,
                "display_name": provider.display_name,
                "connection": connection.to_dict(),
            }
            for provider, connection in zip(registered, statuses)
        ]
    }


# ─── Browse ───────────────────────────────────────────────
@router.get("/{provider_id}/files")
async def list_files(
    provider_id: str,
    folder_id: str | None = None,
    user_id: str = Depends(get_current_user_id),
    providers: ProviderRegistry = Depends(get_provider_registry),
) -> dict[str, Any]:
    """List a folder (root by default)."""
    try:
        files = await providers.get(provider_id).list_files(user_id, folder_id)
    except PipelineError as exc:
        raise to_http_error(exc) from exc
    return {"files": [f.to_dict() for f in files], "folder_id": folder_id}


@router.get("/{provider_id}/files/search")
async def search_files(
    provider_id: str,
    q: str = Query(..., min_length=1, max_length=200),
    user_id: str = Depends(get_current_user_id),
    providers: ProviderRegistry = Depends(get_provider_registry),
) -> dict[str, Any]:
    """Keyword search across the caller's drive."""
    try:
        files = await providers.get(provider_id).search_files(user_id, q)
    except PipelineError as exc:
        raise to_http_error(exc) from exc
    return {"files": [f.to_dict() for f in files], "query": q}


@router.get("/{provider_id}/files/{file_id}")
async def get_file(
    provider_id: str,
    file_id: str,
    user_id: str = Depends(get_current_user_id),
    providers: ProviderRegistry = Depends(get_provider_registry),
) -> dict[str, Any]:
    """Metadata for one file."""
    try:
        meta = await providers.get(provider_id).get_file_metadata(user_id, file_id)
    except PipelineError as exc:
        raise to_http_error(exc) from exc
    return meta.to_dict()


@router.get("/{provider_id}/files/{file_id}/duplicate-check", response_model=DuplicateCheckResponse)
async def duplicate_check(
    provider_id: str,
    file_id: str,
    deal_id: str | None = None,
    user_id: str = Depends(get_current_user_id),
    store: SqlImportRecordStore = Depends(get_record_store),
) -> DuplicateCheckResponse:
    """Whether this file was already imported for the deal."""
    check = await store.check_duplicate(user_id, provider_id, file_id, deal_id)
    return DuplicateCheckResponse(exists=check.exists, message=check.message, record=check.record)


# ─── Import ───────────────────────────────────────────────
@router.post("/{provider_id}/files/batch-process", response_model=BatchProcessResponse)
async def batch_process(
    provider_id: str,
    body: BatchProcessRequest,
    user_id: str = Depends(get_current_user_id),
    processor: StorageFileProcessor = Depends(get_processor),
) -> BatchProcessResponse:
    """
    Import several files concurrently.

    Every file settles on its own; one failure never stops the others.
    """
    if len(body.file_ids) > settings.BATCH_PROCESS_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.BATCH_PROCESS_LIMIT} files per batch",
        )

    async def _one(file_id: str) -> BatchItemResult:
        try:
            result = await processor.process_storage_file(user_id, provider_id, file_id, _options(body))
        except DuplicateImportError as exc:
            return BatchItemResult(
                file_id=file_id,
                status=BatchItemStatus.DUPLICATE,
                message=exc.message,
                existing_record=exc.existing_record,
            )
        except Exception as exc:
            logger.warning("Batch item failed", provider=provider_id, file_id=file_id, error=str(exc))
            return BatchItemResult(file_id=file_id, status=BatchItemStatus.FAILED, message=str(exc))
        return BatchItemResult(
            file_id=file_id,
            status=BatchItemStatus.PROCESSED,
            file_name=result.content.file_name,
            import_record_id=result.import_record_id,
        )

    results = await asyncio.gather(*(_one(file_id) for file_id in body.file_ids))
    return BatchProcessResponse(
        total=len(results),
        processed=sum(1 for r in results if r.status == BatchItemStatus.PROCESSED),
        duplicates=sum(1 for r in results if r.status == BatchItemStatus.DUPLICATE),
        failed=sum(1 for r in results if r.status == BatchItemStatus.FAILED),
        results=results,
    )


@router.post("/{provider_id}/files/{file_id}/process")
async def process_file(
    provider_id: str,
    file_id: str,
    body: ProcessFileRequest | None = None,
    user_id: str = Depends(get_current_user_id),
    processor: StorageFileProcessor = Depends(get_processor),
) -> dict[str, Any]:
    """Import one file: deduplicate, extract, analyse, persist."""
    body = body or ProcessFileRequest()
    try:
        result = await processor.process_storage_file(user_id, provider_id, file_id, _options(body))
    except PipelineError as exc:
        raise to_http_error(exc) from exc
    return result.to_dict()


# ─── Import records ───────────────────────────────────────
@router.get("/imported/deal/{deal_id}")
async def list_deal_imports(
    deal_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SqlImportRecordStore = Depends(get_record_store),
) -> dict[str, Any]:
    """Import records for a deal, newest first."""
    records = await store.list_for_deal(user_id, deal_id)
    return {"data": records, "total": len(records)}


@router.get("/imported/contact/{contact_id}")
async def list_contact_imports(
    contact_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SqlImportRecordStore = Depends(get_record_store),
) -> dict[str, Any]:
    """Import records for a contact, newest first."""
    records = await store.list_for_contact(user_id, contact_id)
    return {"data": records, "total": len(records)}


@router.delete("/imported/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_import(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    store: SqlImportRecordStore = Depends(get_record_store),
) -> None:
    """Remove an import record.  The file in the provider is untouched."""
    if not await store.delete(user_id, record_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Import record not found")
