"""
Import-record status machine.

    created ──▶ processing ──▶ processed
       │                  └──▶ failed
       └────────────────────▶ processed | failed

``processing`` is never persisted: while stages run the row stays
``created``, so the store moves straight from ``created`` to a terminal
state.  Terminal states only leave through a forced re-import, which
starts a fresh cycle at ``created``.
"""

from __future__ import annotations

from storage_import.core.constants import ImportStatus
from storage_import.pipeline.errors import InvalidTransitionError

ALLOWED_TRANSITIONS: dict[ImportStatus, frozenset[ImportStatus]] = {
    ImportStatus.CREATED: frozenset({
        ImportStatus.PROCESSING,
        ImportStatus.PROCESSED,
        ImportStatus.FAILED,
    }),
    ImportStatus.PROCESSING: frozenset({ImportStatus.PROCESSED, ImportStatus.FAILED}),
    ImportStatus.PROCESSED: frozenset(),
    ImportStatus.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({ImportStatus.PROCESSED, ImportStatus.FAILED})


def can_transition(current: str, target: str) -> bool:
    try:
        return ImportStatus(target) in ALLOWED_TRANSITIONS[ImportStatus(current)]
    except ValueError:
        return False


def ensure_transition(current: str, target: str, *, record_id: str | None = None) -> None:
    """Raise InvalidTransitionError unless ``current → target`` is legal."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Illegal import status transition {current!r} -> {target!r}",
            details={"record_id": record_id, "from": current, "to": target},
        )


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES
