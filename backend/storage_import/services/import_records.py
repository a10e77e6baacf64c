"""
SqlImportRecordStore — durable import records over the storage_files table.

Implements both the duplicate checker and the import-record store the
orchestrator consumes.  Every call runs in its own transaction, so each
lifecycle write is a single atomic commit.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storage_import.core.constants import ImportStatus
from storage_import.core.logging import get_logger
from storage_import.db.models.storage_file import StorageFile
from storage_import.pipeline.context import FileRef, build_source_label
from storage_import.pipeline.errors import DuplicateImportError, ImportRecordNotFoundError
from storage_import.pipeline.lifecycle import ensure_transition
from storage_import.pipeline.ports import DuplicateCheck, ImportRecordRef
from storage_import.repositories import storage_files as repo

logger = get_logger(__name__)


def duplicate_message(record: StorageFile) -> str:
    """Human-readable conflict message naming the file and the original import date."""
    imported = record.imported_at
    when = imported.strftime("%Y-%m-%d") if isinstance(imported, datetime) else "an earlier date"
    return (
        f'"{record.file_name}" was already imported on {when}. '
        "Re-import it to replace the previous results."
    )


def _to_ref(record: StorageFile) -> ImportRecordRef:
    return ImportRecordRef(id=str(record.id), status=record.status, source_label=record.source_label)


class SqlImportRecordStore:
    """
    Import-record persistence backed by an async session factory.

    Usage::

        store = SqlImportRecordStore(async_session)
        check = await store.check_duplicate("user-1", "onedrive", "01ABC", "deal-9")
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    # ── Duplicate checker ─────────────────────────────

    async def check_duplicate(
        self,
        user_id: str,
        provider: str,
        file_id: str,
        deal_id: str | None,
    ) -> DuplicateCheck:
        async with self.session_factory() as session:
            record = await repo.find_existing(
                session,
                user_id=user_id,
                provider=provider,
                provider_file_id=file_id,
                deal_id=deal_id,
            )
        if record is None:
            return DuplicateCheck(exists=False)
        return DuplicateCheck(
            exists=True,
            record=record.to_dict(),
            message=duplicate_message(record),
        )

    # ── Lifecycle writes ──────────────────────────────

    async def create_import_record(
        self,
        file_ref: FileRef,
        user_id: str,
        deal_id: str | None,
        contact_id: str | None,
        force: bool = False,
    ) -> ImportRecordRef:
        """
        Insert a record in ``created`` status.

        With ``force`` an existing record for the same tuple is reset to a
        fresh cycle instead.  Without it, losing a race against a concurrent
        import of the same tuple raises DuplicateImportError.
        """
        source_label = build_source_label(file_ref.provider, file_ref.file_name)
        descriptors = {
            "file_name": file_ref.file_name,
            "file_size": file_ref.file_size,
            "mime_type": file_ref.mime_type,
            "category": file_ref.category,
            "web_url": file_ref.web_url,
            "last_modified_at": file_ref.last_modified_at,
            "source_label": source_label,
        }

        if force:
            async with self.session_factory() as session:
                async with session.begin():
                    existing = await repo.find_existing(
                        session,
                        user_id=user_id,
                        provider=file_ref.provider,
                        provider_file_id=file_ref.provider_file_id,
                        deal_id=deal_id,
                    )
                    if existing is not None:
                        previous_status = existing.status
                        if contact_id is not None:
                            descriptors["contact_id"] = contact_id
                        record = await repo.reset_for_reimport(session, existing, **descriptors)
                        logger.info(
                            "Import record reset for re-import",
                            import_record_id=str(record.id),
                            previous_status=previous_status,
                        )
                        return _to_ref(record)

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    record = await repo.create_storage_file(
                        session,
                        user_id=user_id,
                        provider=file_ref.provider,
                        provider_file_id=file_ref.provider_file_id,
                        deal_id=deal_id,
                        contact_id=contact_id,
                        **descriptors,
                    )
                    ref = _to_ref(record)
        except IntegrityError as exc:
            check = await self.check_duplicate(
                user_id, file_ref.provider, file_ref.provider_file_id, deal_id
            )
            raise DuplicateImportError(
                check.message or "This file has already been imported",
                existing_record=check.record,
            ) from exc

        logger.info("Import record created", import_record_id=ref.id, source_label=source_label)
        return ref

    async def mark_processed(self, record_id: str, insights: dict[str, Any]) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                record = await self._get_for_update(session, record_id)
                ensure_transition(record.status, ImportStatus.PROCESSED, record_id=record_id)
                await repo.save_insights(session, record, insights)

    async def mark_failed(self, record_id: str, error_message: str) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                record = await self._get_for_update(session, record_id)
                ensure_transition(record.status, ImportStatus.FAILED, record_id=record_id)
                await repo.save_failure(session, record, error_message)

    # ── Reads / deletion for the HTTP surface ─────────

    async def get(self, user_id: str, record_id: str) -> dict[str, Any] | None:
        async with self.session_factory() as session:
            record = await repo.get_by_id(session, record_id)
            if record is None or record.user_id != user_id:
                return None
            return record.to_dict()

    async def list_for_deal(self, user_id: str, deal_id: str) -> list[dict[str, Any]]:
        async with self.session_factory() as session:
            records = await repo.list_for_deal(session, user_id, deal_id)
            return [r.to_dict() for r in records]

    async def list_for_contact(self, user_id: str, contact_id: str) -> list[dict[str, Any]]:
        async with self.session_factory() as session:
            records = await repo.list_for_contact(session, user_id, contact_id)
            return [r.to_dict() for r in records]

    async def delete(self, user_id: str, record_id: str) -> bool:
        """Remove the import record only; the provider's file is untouched."""
        async with self.session_factory() as session:
            async with session.begin():
                deleted = await repo.delete_storage_file(session, user_id, record_id)
        if deleted:
            logger.info("Import record deleted", import_record_id=record_id, user_id=user_id)
        return deleted

    @staticmethod
    async def _get_for_update(session: AsyncSession, record_id: str) -> StorageFile:
        record = await repo.get_by_id(session, record_id)
        if record is None:
            raise ImportRecordNotFoundError(
                f"Import record {record_id} not found",
                details={"record_id": record_id},
            )
        return record
