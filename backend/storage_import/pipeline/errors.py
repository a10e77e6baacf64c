"""
Domain-specific exception hierarchy for the storage import pipeline.

All pipeline exceptions inherit from PipelineError so callers can
catch broadly or narrowly as needed.  Each exception carries a stable
``code`` plus structured context (stage name, execution ID, etc.) for
logging and for the HTTP layer's status mapping.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    code = "PIPELINE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        execution_id: str | None = None,
        step_name: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.message = message
        self.execution_id = execution_id
        self.step_name = step_name
        self.details = details or {}
        super().__init__(message)


class DuplicateImportError(PipelineError):
    """The file was already imported for this deal and ``force`` was not set."""

    code = "DUPLICATE_IMPORT"

    def __init__(
        self,
        message: str,
        *,
        existing_record: dict[str, Any] | None = None,
        **kwargs,
    ) -> None:
        self.existing_record = existing_record
        super().__init__(message, **kwargs)


class UnknownProviderError(PipelineError):
    """No storage provider is registered under the requested id."""

    code = "UNKNOWN_PROVIDER"


class ExtractionError(PipelineError):
    """Downloading or extracting text from a storage file failed."""

    code = "EXTRACTION_ERROR"


class FileTooLargeError(ExtractionError):
    """The file exceeds the processing size limit."""

    code = "FILE_TOO_LARGE"


class UnsupportedFileTypeError(ExtractionError):
    """No extractor handles the file's MIME type."""

    code = "UNSUPPORTED_FILE_TYPE"


class UnknownStageError(PipelineError):
    """A requested stage name is not registered (configuration error)."""

    code = "UNKNOWN_STAGE"


class StageError(PipelineError):
    """A single stage failed; captured as that stage's result, never raised past the runner."""

    code = "STAGE_ERROR"


class PipelineRunError(PipelineError):
    """The fan-out/fan-in phase itself failed (not an individual stage)."""

    code = "PIPELINE_RUN_ERROR"


class DownstreamTriggerError(PipelineError):
    """Notifying the downstream regenerator failed.  Logged only."""

    code = "DOWNSTREAM_TRIGGER_ERROR"


class InvalidTransitionError(PipelineError):
    """An import record was asked to make an illegal status transition."""

    code = "INVALID_TRANSITION"


class ImportRecordNotFoundError(PipelineError):
    """The import record does not exist or belongs to another user."""

    code = "IMPORT_RECORD_NOT_FOUND"


class ExternalServiceError(PipelineError):
    """An HTTP call to an internal or provider API failed."""

    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs,
    ) -> None:
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, **kwargs)
