"""Shared dependencies for API routes."""

from __future__ import annotations

from functools import lru_cache

from anthropic import AsyncAnthropic
from fastapi import Header, HTTPException, status

from storage_import.analysis.deal_health import DealHealthClient
from storage_import.analysis.text_analyzer import AnthropicTextAnalyzer
from storage_import.core.config import settings
from storage_import.db.session import async_session
from storage_import.pipeline.orchestrator import StorageFileProcessor
from storage_import.pipeline.stage_registry import build_default_registry
from storage_import.services.import_records import SqlImportRecordStore
from storage_import.services.regeneration import CeleryRegenerationTrigger
from storage_import.storage.factory import ProviderRegistry, build_provider_registry


async def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """Caller identity set by the upstream gateway."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required",
        )
    return x_user_id.strip()


@lru_cache
def get_provider_registry() -> ProviderRegistry:
    return build_provider_registry()


@lru_cache
def get_record_store() -> SqlImportRecordStore:
    return SqlImportRecordStore(async_session)


@lru_cache
def get_processor() -> StorageFileProcessor:
    """Processor wired to the production collaborators, built once per process."""
    analyzer = AnthropicTextAnalyzer(AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY))
    store = get_record_store()
    return StorageFileProcessor(
        sources=get_provider_registry(),
        duplicate_checker=store,
        record_store=store,
        registry=build_default_registry(analyzer, DealHealthClient()),
        trigger=CeleryRegenerationTrigger(),
    )
