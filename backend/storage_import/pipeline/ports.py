"""
Contracts the orchestrator consumes.

Concrete implementations live in ``storage_import.storage``,
``storage_import.services`` and ``storage_import.analysis``; tests
substitute AsyncMock fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from storage_import.pipeline.context import Content, FileRef


@dataclass
class DuplicateCheck:
    """Outcome of a duplicate lookup."""

    exists: bool
    record: dict[str, Any] | None = None
    message: str | None = None


@dataclass
class ImportRecordRef:
    """Identity of a freshly created (or reset) import record."""

    id: str
    status: str
    source_label: str


class ContentSource(Protocol):
    provider_id: str

    async def extract_file_content(self, user_id: str, file_id: str) -> Content: ...


class ContentSourceResolver(Protocol):
    def get(self, provider_id: str) -> ContentSource: ...


class DuplicateChecker(Protocol):
    async def check_duplicate(
        self,
        user_id: str,
        provider: str,
        file_id: str,
        deal_id: str | None,
    ) -> DuplicateCheck: ...


class ImportRecordStore(Protocol):
    async def create_import_record(
        self,
        file_ref: FileRef,
        user_id: str,
        deal_id: str | None,
        contact_id: str | None,
        force: bool = False,
    ) -> ImportRecordRef: ...

    async def mark_processed(self, record_id: str, insights: dict[str, Any]) -> None: ...

    async def mark_failed(self, record_id: str, error_message: str) -> None: ...


class TextAnalyzer(Protocol):
    async def analyze(self, text: str, metadata: dict[str, Any]) -> dict[str, Any]: ...


class HealthScoringService(Protocol):
    async def apply_signals(
        self, deal_id: str, text: str, source_type: str, user_id: str
    ) -> list[dict[str, Any]]: ...

    async def detect_competitors(
        self, deal_id: str, user_id: str, text: str
    ) -> list[dict[str, Any]]: ...

    async def score_deal(self, deal_id: str, user_id: str) -> dict[str, Any]: ...


class DownstreamTrigger(Protocol):
    async def notify(self, import_record_id: str, user_id: str) -> None: ...
