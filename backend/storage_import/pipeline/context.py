"""
Value objects carried through one storage-file import.

    Content        — extracted text + file descriptors (built once by the provider)
    ProcessOptions — caller options for process_storage_file()
    StageResult    — outcome of one analysis stage
    ProcessResult  — what process_storage_file() hands back to the caller

Content and FileRef are frozen: the category is fixed the moment the
provider classifies the file and it decides which stages run by default.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from storage_import.core.constants import PROVIDER_DISPLAY_NAMES, ContentCategory


# ═══════════════════════════════════════════════════════════
#  FileRef / Content
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FileRef:
    """Opaque provider handle for a file, persisted on the import record."""

    provider: str
    provider_file_id: str
    file_name: str
    web_url: str | None = None
    file_size: int = 0
    mime_type: str | None = None
    category: str | None = None
    last_modified_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "provider_file_id": self.provider_file_id,
            "file_name": self.file_name,
            "web_url": self.web_url,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "category": self.category,
            "last_modified_at": self.last_modified_at,
        }


@dataclass(frozen=True)
class Content:
    """
    Extracted content of one storage file.

    Args:
        file_id: Provider-specific file ID.
        file_name: Display name.
        category: ContentCategory value; drives default stage selection.
        raw_text: Extracted plain text.
        provider: Provider ID, e.g. "onedrive".
        file_ref: Provider handle (includes the web-viewable URL).
        mime_type: Effective MIME type the text was extracted from.
        metadata: Size, last modified, parent folder, export flag.
    """

    file_id: str
    file_name: str
    category: ContentCategory
    raw_text: str
    provider: str
    file_ref: FileRef
    mime_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def character_count(self) -> int:
        return len(self.raw_text)


# ═══════════════════════════════════════════════════════════
#  ProcessOptions
# ═══════════════════════════════════════════════════════════

@dataclass
class ProcessOptions:
    """Options recognised by process_storage_file()."""

    deal_id: str | None = None
    contact_id: str | None = None
    pipelines: list[str] | None = None
    dry_run: bool = False
    force: bool = False

    # Filled in by the orchestrator before the fan-out
    user_id: str | None = None
    source_label: str | None = None
    execution_id: str = field(default_factory=lambda: str(uuid.uuid4()))


# ═══════════════════════════════════════════════════════════
#  StageResult
# ═══════════════════════════════════════════════════════════

@dataclass
class StageResult:
    """Outcome of a single stage: success with payload, failure with error, or skip."""

    stage_name: str
    success: bool
    payload: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    skipped: bool = False
    skip_reason: str | None = None
    duration_ms: int = 0

    @property
    def usable(self) -> bool:
        """True when the stage ran and produced a payload worth keeping."""
        return self.success and not self.skipped

    def to_dict(self) -> dict[str, Any]:
        """Serialise for the API response."""
        data: dict[str, Any] = {
            "stage_name": self.stage_name,
            "success": self.success,
            "duration_ms": self.duration_ms,
        }
        if self.success:
            data["payload"] = self.payload
        if self.error is not None:
            data["error"] = self.error
        if self.skipped:
            data["skipped"] = True
            data["skip_reason"] = self.skip_reason
        return data


# ═══════════════════════════════════════════════════════════
#  ProcessResult
# ═══════════════════════════════════════════════════════════

@dataclass
class ProcessResult:
    """Result of process_storage_file()."""

    content: Content
    source_label: str
    pipelines_run: list[str]
    results: dict[str, StageResult]
    import_record_id: str | None = None
    insights: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": {
                "id": self.content.file_id,
                "name": self.content.file_name,
                "category": self.content.category.value,
                "character_count": self.content.character_count,
                "provider": self.content.provider,
                "web_url": self.content.file_ref.web_url,
                "source_label": self.source_label,
                "import_record_id": self.import_record_id,
            },
            "pipelines_run": list(self.pipelines_run),
            "results": {name: result.to_dict() for name, result in self.results.items()},
        }


def build_source_label(provider: str, file_name: str) -> str:
    """``"OneDrive: Q3 Proposal.docx"``; unknown providers keep their raw id."""
    display = PROVIDER_DISPLAY_NAMES.get(provider, provider)
    return f"{display}: {file_name}"
