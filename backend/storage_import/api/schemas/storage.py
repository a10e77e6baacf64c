"""Storage import request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from storage_import.core.constants import BatchItemStatus

# Mirrors settings.BATCH_PROCESS_LIMIT's default; the route enforces the setting
MAX_BATCH_FILES = 20


class ProcessFileRequest(BaseModel):
    """Options for importing one storage file."""

    deal_id: str | None = Field(default=None, max_length=100)
    contact_id: str | None = Field(default=None, max_length=100)
    pipelines: list[str] | None = Field(
        default=None,
        description="Explicit stage names; defaults to the file category's stages",
    )
    dry_run: bool = False
    force: bool = False


class BatchProcessRequest(ProcessFileRequest):
    """Import several files from one provider with shared options."""

    file_ids: list[str] = Field(..., min_length=1, max_length=MAX_BATCH_FILES)


class BatchItemResult(BaseModel):
    file_id: str
    status: BatchItemStatus
    file_name: str | None = None
    import_record_id: str | None = None
    message: str | None = None
    existing_record: dict[str, Any] | None = None


class BatchProcessResponse(BaseModel):
    total: int
    processed: int
    duplicates: int
    failed: int
    results: list[BatchItemResult]


class DuplicateCheckResponse(BaseModel):
    exists: bool
    message: str | None = None
    record: dict[str, Any] | None = None


class ErrorDetail(BaseModel):
    """Body of every pipeline error response."""

    code: str
    message: str
    existing_record: dict[str, Any] | None = None
