"""
StorageProvider — abstract base class every cloud-storage provider implements.

The processor and the routes never import a provider directly; they go
through ProviderRegistry, which resolves the implementation by id.

To add a new provider (e.g. Dropbox):
    1. Subclass StorageProvider in storage/
    2. Register it in build_provider_registry()
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from storage_import.analysis.tokens import ProviderNotConnectedError, TokenServiceClient
from storage_import.core.http import HttpServiceClient
from storage_import.pipeline.context import Content, FileRef
from storage_import.pipeline.errors import ExternalServiceError, ExtractionError, PipelineError
from storage_import.storage.content_extractor import (
    FOLDER_CATEGORY,
    extract_text_from_bytes,
    resolve_category,
)


@dataclass
class StorageFileInfo:
    """Provider-neutral file or folder listing entry."""

    id: str
    name: str
    provider: str
    size: int = 0
    last_modified: str | None = None
    mime_type: str | None = None
    is_folder: bool = False
    child_count: int = 0
    parent_folder: str | None = None
    web_url: str | None = None
    category: str = "other"
    is_google_native: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.provider,
            "size": self.size,
            "last_modified": self.last_modified,
            "mime_type": self.mime_type,
            "is_folder": self.is_folder,
            "child_count": self.child_count,
            "parent_folder": self.parent_folder,
            "web_url": self.web_url,
            "category": self.category,
            "is_google_native": self.is_google_native,
        }


@dataclass
class ConnectionStatus:
    connected: bool
    message: str
    requires_reauth: bool = False
    reauth_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "connected": self.connected,
            "message": self.message,
            "requires_reauth": self.requires_reauth,
            "reauth_url": self.reauth_url,
        }


class StorageProvider(HttpServiceClient, ABC):
    """
    Base class for cloud-storage providers.

    Subclasses MUST implement:
        - provider_id / display_name / token_key
        - check_connection, list_files, search_files, get_file_metadata
        - extract_file_content
    """

    provider_id: str = "unknown"
    display_name: str = "Unknown"
    token_key: str = "unknown"
    auth_url: str = ""

    def __init__(
        self,
        tokens: TokenServiceClient,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(base_url, client=client, timeout=timeout)
        self.service_name = self.display_name
        self.tokens = tokens

    # ── Connection ─────────────────────────────────────

    @abstractmethod
    async def check_connection(self, user_id: str) -> ConnectionStatus:
        """Report whether the user's credentials work.  Never raises."""
        ...

    # ── Browsing ───────────────────────────────────────

    @abstractmethod
    async def list_files(self, user_id: str, folder_id: str | None = None) -> list[StorageFileInfo]:
        ...

    @abstractmethod
    async def search_files(self, user_id: str, query: str) -> list[StorageFileInfo]:
        ...

    @abstractmethod
    async def get_file_metadata(self, user_id: str, file_id: str) -> StorageFileInfo:
        ...

    # ── Content extraction ─────────────────────────────

    @abstractmethod
    async def extract_file_content(self, user_id: str, file_id: str) -> Content:
        """Download a file and extract its text.  Raises ExtractionError."""
        ...

    # ─── Helpers available to all providers ───────────

    async def _get(self, user_id: str, path: str, **kwargs: Any) -> Any:
        token = await self.tokens.get_access_token(user_id, self.token_key)
        return await self._request_json(
            "GET", path, headers={"Authorization": f"Bearer {token}"}, **kwargs
        )

    async def _download(self, user_id: str, path: str, **kwargs: Any) -> bytes:
        token = await self.tokens.get_access_token(user_id, self.token_key)
        return await self._request_bytes(
            "GET", path, headers={"Authorization": f"Bearer {token}"}, **kwargs
        )

    async def _connection_status(self, user_id: str, probe_path: str, **params: Any) -> ConnectionStatus:
        """Probe a cheap endpoint and translate failures into a ConnectionStatus."""
        try:
            await self._get(user_id, probe_path, params=params)
        except ProviderNotConnectedError:
            return ConnectionStatus(
                connected=False,
                message=f"{self.display_name} account not connected.",
                reauth_url=self.auth_url,
            )
        except ExternalServiceError as exc:
            if exc.status_code in (401, 403):
                return ConnectionStatus(
                    connected=False,
                    requires_reauth=True,
                    message=f"{self.display_name} access expired or not granted. Please reconnect.",
                    reauth_url=self.auth_url,
                )
            return ConnectionStatus(connected=False, message=exc.message)
        return ConnectionStatus(connected=True, message=f"{self.display_name} connected.")

    async def _build_content(
        self,
        meta: StorageFileInfo,
        data: bytes,
        effective_mime_type: str | None,
        *,
        was_exported: bool = False,
    ) -> Content:
        """Extract text off the event loop and wrap it in a Content."""
        try:
            raw_text = await asyncio.to_thread(
                extract_text_from_bytes, data, effective_mime_type, meta.name
            )
        except PipelineError:
            raise
        except Exception as exc:
            raise ExtractionError(
                f'Could not extract text from "{meta.name}": {exc}',
                details={"file_id": meta.id, "mime_type": effective_mime_type},
            ) from exc

        size = meta.size or len(data)
        category = resolve_category(meta.mime_type)
        file_ref = FileRef(
            provider=self.provider_id,
            provider_file_id=meta.id,
            file_name=meta.name,
            web_url=meta.web_url,
            file_size=size,
            mime_type=meta.mime_type,
            category=category.value,
            last_modified_at=meta.last_modified,
        )
        return Content(
            file_id=meta.id,
            file_name=meta.name,
            category=category,
            raw_text=raw_text,
            provider=self.provider_id,
            file_ref=file_ref,
            mime_type=effective_mime_type,
            metadata={
                "size": size,
                "last_modified": meta.last_modified,
                "parent_folder": meta.parent_folder,
                "was_exported": was_exported,
            },
        )

    @staticmethod
    def _category_for(mime_type: str | None, is_folder: bool) -> str:
        return FOLDER_CATEGORY if is_folder else resolve_category(mime_type).value
