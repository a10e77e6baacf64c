"""
StorageFile — one import record per (user, provider, file, deal).

Tracks a cloud-storage file through its processing lifecycle and keeps the
insights learned from it.  Never stores the extracted text itself.

    created → processing → processed | failed

A forced re-import resets the same row to ``created`` and clears the
previous cycle's insights and error.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storage_import.core.constants import ImportStatus
from storage_import.db.models.base import Base, JSONType, generate_uuid, utcnow


class StorageFile(Base):
    """Durable import record for one storage file and one deal."""

    __tablename__ = "storage_files"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "provider", "provider_file_id", "deal_id",
            name="uq_storage_files_user_provider_file_deal",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=generate_uuid)

    # ── Ownership / linkage ───────────────────
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    deal_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    contact_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    # ── File identity ─────────────────────────
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    provider_file_id: Mapped[str] = mapped_column(String(500), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, default=0)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    web_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_modified_at: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Provenance tag for downstream records, e.g. "OneDrive: Q3 Proposal.docx"
    source_label: Mapped[str] = mapped_column(String(600), nullable=False)

    # ── Lifecycle ─────────────────────────────
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ImportStatus.CREATED.value, index=True
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Insights (populated only on success) ──
    insights: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    pipelines_run: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_sentiment: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    ai_analysis_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    health_score_after: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    health_status_after: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # ── Timestamps ────────────────────────────
    imported_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialise for API responses and DUPLICATE_IMPORT payloads."""
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "deal_id": self.deal_id,
            "contact_id": self.contact_id,
            "provider": self.provider,
            "provider_file_id": self.provider_file_id,
            "file_name": self.file_name,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "category": self.category,
            "web_url": self.web_url,
            "source_label": self.source_label,
            "status": self.status,
            "error_message": self.error_message,
            "insights": self.insights,
            "pipelines_run": self.pipelines_run,
            "ai_summary": self.ai_summary,
            "ai_sentiment": self.ai_sentiment,
            "ai_analysis_type": self.ai_analysis_type,
            "health_score_after": self.health_score_after,
            "health_status_after": self.health_status_after,
            "imported_at": self.imported_at.isoformat() if self.imported_at else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<StorageFile {self.source_label!r} deal={self.deal_id} status={self.status}>"
