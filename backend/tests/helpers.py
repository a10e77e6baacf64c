"""Builders and DB helpers shared by the tests."""

import uuid

from sqlalchemy import func, select

from storage_import.core.constants import ContentCategory
from storage_import.db.models import StorageFile
from storage_import.pipeline.context import Content, FileRef


def make_content(
    *,
    file_id: str = "file-1",
    file_name: str = "Q3 Proposal.docx",
    category: ContentCategory = ContentCategory.DOCUMENT,
    raw_text: str = "We agreed to send the revised pricing by Friday.",
    provider: str = "onedrive",
) -> Content:
    """Build extracted content the way a provider would."""
    file_ref = FileRef(
        provider=provider,
        provider_file_id=file_id,
        file_name=file_name,
        web_url=f"https://example.test/{file_id}",
        file_size=len(raw_text),
        mime_type="text/plain",
        category=category.value,
        last_modified_at="2026-09-30T10:00:00Z",
    )
    return Content(
        file_id=file_id,
        file_name=file_name,
        category=category,
        raw_text=raw_text,
        provider=provider,
        file_ref=file_ref,
        mime_type="text/plain",
        metadata={"size": len(raw_text)},
    )


async def count_records(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(StorageFile))
        return result.scalar_one()


async def load_record(session_factory, record_id: str) -> StorageFile | None:
    async with session_factory() as session:
        return await session.get(StorageFile, uuid.UUID(record_id))
