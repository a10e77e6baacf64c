"""
Storage import pipeline — deduplicate, extract, fan out, aggregate, commit.

This package provides the orchestrator that imports one cloud-storage
file through a category-driven set of independently failing analysis
stages, with a persisted import record and a best-effort downstream
regeneration hand-off.
"""

from storage_import.pipeline.context import Content, FileRef, ProcessOptions, ProcessResult, StageResult
from storage_import.pipeline.orchestrator import StorageFileProcessor
from storage_import.pipeline.stage import PipelineStage
from storage_import.pipeline.stage_registry import StageRegistry, build_default_registry

__all__ = [
    "Content",
    "FileRef",
    "PipelineStage",
    "ProcessOptions",
    "ProcessResult",
    "StageRegistry",
    "StageResult",
    "StorageFileProcessor",
    "build_default_registry",
]
