"""
Storage-file repository containing all data-access operations for the
storage_files table.

Repository rules:
- Pure data-access logic only
- Every function receives AsyncSession explicitly
- Functions flush, but never commit
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storage_import.core.constants import ImportStatus
from storage_import.db.models.storage_file import StorageFile


def _as_uuid(record_id: str | uuid.UUID) -> uuid.UUID | None:
    if isinstance(record_id, uuid.UUID):
        return record_id
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        return None


async def get_by_id(db: AsyncSession, record_id: str | uuid.UUID) -> StorageFile | None:
    """Fetch an import record by primary key."""
    key = _as_uuid(record_id)
    if key is None:
        return None
    return await db.get(StorageFile, key)


async def find_existing(
    db: AsyncSession,
    *,
    user_id: str,
    provider: str,
    provider_file_id: str,
    deal_id: str | None,
) -> StorageFile | None:
    """Find the record for a (user, provider, file, deal) tuple; NULL deal matches NULL."""
    stmt = select(StorageFile).where(
        StorageFile.user_id == user_id,
        StorageFile.provider == provider,
        StorageFile.provider_file_id == provider_file_id,
        StorageFile.deal_id.is_not_distinct_from(deal_id),
    )
    result = await db.execute(stmt)
    return result.scalars().first()


async def create_storage_file(
    db: AsyncSession,
    *,
    user_id: str,
    provider: str,
    provider_file_id: str,
    file_name: str,
    source_label: str,
    deal_id: str | None = None,
    contact_id: str | None = None,
    file_size: int = 0,
    mime_type: str | None = None,
    category: str | None = None,
    web_url: str | None = None,
    last_modified_at: str | None = None,
) -> StorageFile:
    """Insert a new import record in ``created`` status."""
    record = StorageFile(
        user_id=user_id,
        provider=provider,
        provider_file_id=provider_file_id,
        file_name=file_name,
        source_label=source_label,
        deal_id=deal_id,
        contact_id=contact_id,
        file_size=file_size or 0,
        mime_type=mime_type,
        category=category,
        web_url=web_url,
        last_modified_at=last_modified_at,
        status=ImportStatus.CREATED.value,
    )
    db.add(record)
    await db.flush()
    return record


async def reset_for_reimport(
    db: AsyncSession,
    record: StorageFile,
    **descriptors: Any,
) -> StorageFile:
    """Start a fresh cycle on an existing record: back to ``created``, prior outcome cleared."""
    for key, value in descriptors.items():
        if value is not None:
            setattr(record, key, value)

    record.status = ImportStatus.CREATED.value
    record.error_message = None
    record.insights = None
    record.pipelines_run = None
    record.ai_summary = None
    record.ai_sentiment = None
    record.ai_analysis_type = None
    record.health_score_after = None
    record.health_status_after = None
    record.processed_at = None
    record.imported_at = datetime.now(timezone.utc)
    await db.flush()
    return record


async def save_insights(
    db: AsyncSession,
    record: StorageFile,
    insights: dict[str, Any],
) -> StorageFile:
    """Store aggregated insights and stamp the record ``processed``."""
    record.status = ImportStatus.PROCESSED.value
    record.insights = insights
    record.pipelines_run = insights.get("pipelines_run")
    record.ai_summary = insights.get("ai_summary")
    record.ai_sentiment = insights.get("ai_sentiment")
    record.ai_analysis_type = insights.get("ai_analysis_type")
    record.health_score_after = insights.get("health_score_after")
    record.health_status_after = insights.get("health_status_after")
    record.error_message = None
    record.processed_at = datetime.now(timezone.utc)
    await db.flush()
    return record


async def save_failure(
    db: AsyncSession,
    record: StorageFile,
    error_message: str,
) -> StorageFile:
    """Stamp the record ``failed`` with the error message."""
    record.status = ImportStatus.FAILED.value
    record.error_message = error_message
    await db.flush()
    return record


async def list_for_deal(
    db: AsyncSession,
    user_id: str,
    deal_id: str,
    *,
    offset: int = 0,
    limit: int = 50,
) -> list[StorageFile]:
    """Import records for a deal, newest first."""
    stmt = (
        select(StorageFile)
        .where(StorageFile.user_id == user_id, StorageFile.deal_id == deal_id)
        .order_by(StorageFile.imported_at.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_for_contact(
    db: AsyncSession,
    user_id: str,
    contact_id: str,
    *,
    offset: int = 0,
    limit: int = 50,
) -> list[StorageFile]:
    """Import records for a contact, newest first."""
    stmt = (
        select(StorageFile)
        .where(StorageFile.user_id == user_id, StorageFile.contact_id == contact_id)
        .order_by(StorageFile.imported_at.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def delete_storage_file(
    db: AsyncSession,
    user_id: str,
    record_id: str | uuid.UUID,
) -> bool:
    """Hard-delete a user's import record. Returns True if a row was deleted."""
    record = await get_by_id(db, record_id)
    if record is None or record.user_id != user_id:
        return False
    await db.delete(record)
    await db.flush()
    return True
