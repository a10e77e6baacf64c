"""API schema package."""

from storage_import.api.schemas.storage import (
    BatchItemResult,
    BatchProcessRequest,
    BatchProcessResponse,
    DuplicateCheckResponse,
    ErrorDetail,
    ProcessFileRequest,
)

__all__ = [
    "BatchItemResult",
    "BatchProcessRequest",
    "BatchProcessResponse",
    "DuplicateCheckResponse",
    "ErrorDetail",
    "ProcessFileRequest",
]
