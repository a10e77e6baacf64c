"""Shared test fixtures for the storage import service."""

import os

# Must be set before storage_import.core.config is imported
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LANGSMITH_TRACING", "false")

from unittest.mock import AsyncMock, MagicMock

import pytest
from storage_import.db.session import init_models, make_engine, make_session_factory
from storage_import.pipeline.orchestrator import StorageFileProcessor
from storage_import.pipeline.stage_registry import build_default_registry
from storage_import.services.import_records import SqlImportRecordStore
from storage_import.storage.factory import ProviderRegistry
from tests.helpers import make_content


@pytest.fixture
def content():
    return make_content()


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so every session sees the same tables."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'imports.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def store(session_factory):
    return SqlImportRecordStore(session_factory)



# ============================================================================
# Collaborator fakes
# ============================================================================

@pytest.fixture
def source(content):
    """Provider fake returning ``content``."""
    mock = MagicMock()
    mock.provider_id = "onedrive"
    mock.display_name = "OneDrive"
    mock.extract_file_content = AsyncMock(return_value=content)
    return mock


@pytest.fixture
def analyzer():
    mock = AsyncMock()
    mock.analyze = AsyncMock(return_value={
        "summary": "S",
        "action_items": [{"description": "Send revised pricing"}],
        "sentiment": "positive",
    })
    return mock


@pytest.fixture
def health_service():
    mock = AsyncMock()
    mock.apply_signals = AsyncMock(return_value=[{"name": "pricing_discussed", "impact": 5}])
    mock.detect_competitors = AsyncMock(return_value=[{"name": "Acme"}])
    mock.score_deal = AsyncMock(return_value={"score": 72, "health": "green"})
    return mock


@pytest.fixture
def trigger():
    mock = AsyncMock()
    mock.notify = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def registry(analyzer, health_service):
    return build_default_registry(analyzer, health_service)


@pytest.fixture
def processor(source, store, registry, trigger):
    return StorageFileProcessor(
        sources=ProviderRegistry([source]),
        duplicate_checker=store,
        record_store=store,
        registry=registry,
        trigger=trigger,
    )
