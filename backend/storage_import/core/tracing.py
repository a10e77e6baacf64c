"""
LangSmith tracing for the analyzer's model calls.

``setup_tracing()`` runs once at startup and exports the LangSmith
environment the SDK reads.  Until it succeeds, ``traceable_step`` is a
plain pass-through, so local runs and tests never reach LangSmith.

Usage:
    @traceable_step("analyze_text", run_type="llm", metadata_from=lambda self, prompt, meta: meta)
    async def _complete(self, prompt, meta):
        ...
"""

from __future__ import annotations

import functools
import os
from typing import Any, Callable

from langsmith import traceable

from storage_import.core.config import settings
from storage_import.core.logging import get_logger

logger = get_logger(__name__)

_tracing_enabled = False


def setup_tracing() -> bool:
    """Enable LangSmith when configured.  Returns whether tracing is on."""
    global _tracing_enabled

    if not (settings.LANGSMITH_TRACING and settings.LANGSMITH_API_KEY):
        logger.info("LangSmith tracing disabled")
        _tracing_enabled = False
        return False

    os.environ.update({
        "LANGSMITH_API_KEY": settings.LANGSMITH_API_KEY,
        "LANGSMITH_ENDPOINT": settings.LANGSMITH_ENDPOINT,
        "LANGSMITH_PROJECT": settings.LANGSMITH_PROJECT,
        "LANGSMITH_TRACING": "true",
    })
    logger.info("LangSmith tracing enabled", project=settings.LANGSMITH_PROJECT)
    _tracing_enabled = True
    return True


def traceable_step(
    name: str,
    run_type: str = "chain",
    tags: list[str] | None = None,
    metadata_from: Callable[..., dict[str, Any]] | None = None,
) -> Callable:
    """
    Trace an async function as one LangSmith run when tracing is enabled.

    Args:
        name: Run name shown in LangSmith.
        run_type: "chain", "llm", "tool" or "retriever".
        tags: Static tags for filtering.
        metadata_from: Called with the wrapped function's arguments; its
            result is attached as per-call run metadata (file, deal, type).
    """
    def decorator(func: Callable) -> Callable:
        traced = traceable(name=name, run_type=run_type, tags=tags or [])(func)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not _tracing_enabled:
                return await func(*args, **kwargs)
            if metadata_from is not None:
                kwargs["langsmith_extra"] = {"metadata": metadata_from(*args, **kwargs)}
            return await traced(*args, **kwargs)
        return wrapper
    return decorator
