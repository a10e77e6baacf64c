"""Shared constants and enums used across the application."""

from enum import StrEnum


class ContentCategory(StrEnum):
    """Content category inferred from a file's MIME type."""

    TRANSCRIPT = "transcript"
    DOCUMENT = "document"
    EMAIL = "email"
    OTHER = "other"


class ImportStatus(StrEnum):
    """Status of an import record through the processing lifecycle."""

    CREATED = "created"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class StageName(StrEnum):
    """Analysis stages a file can be fanned out to."""

    ANALYSIS = "analysis"
    HEALTH_SCORING = "health_scoring"


class AnalysisType(StrEnum):
    """Analysis flavour handed to the text analyzer."""

    MEETING_TRANSCRIPT = "meeting_transcript"
    PROPOSAL = "proposal"
    CONTRACT = "contract"
    GENERAL_DOCUMENT = "general_document"
    EMAIL_THREAD = "email_thread"


class BatchItemStatus(StrEnum):
    """Per-file outcome in a batch import."""

    PROCESSED = "processed"
    DUPLICATE = "duplicate"
    FAILED = "failed"


# Provider id → display name used in source labels
PROVIDER_DISPLAY_NAMES: dict[str, str] = {
    "onedrive": "OneDrive",
    "googledrive": "Google Drive",
}
