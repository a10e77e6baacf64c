"""
GoogleDriveProvider — Drive v3 implementation of StorageProvider.

Google-native Docs, Slides and Sheets have no downloadable bytes; they
are exported (docx / plain text / xlsx) and the export is extracted.
"""

from __future__ import annotations

from typing import Any

from storage_import.core.config import settings
from storage_import.pipeline.context import Content
from storage_import.storage.base import ConnectionStatus, StorageFileInfo, StorageProvider
from storage_import.storage.content_extractor import (
    GOOGLE_FOLDER_MIME,
    GOOGLE_NATIVE_EXPORT_MAP,
    assert_size_allowed,
)

FILE_FIELDS = "id,name,size,modifiedTime,mimeType,parents,webViewLink"


class GoogleDriveProvider(StorageProvider):
    provider_id = "googledrive"
    display_name = "Google Drive"
    token_key = "googledrive"
    auth_url = "/api/auth/google"

    def __init__(self, tokens, base_url: str | None = None, **kwargs) -> None:
        super().__init__(tokens, base_url or settings.GOOGLE_DRIVE_BASE_URL, **kwargs)

    async def check_connection(self, user_id: str) -> ConnectionStatus:
        return await self._connection_status(user_id, "/about", fields="user")

    async def list_files(self, user_id: str, folder_id: str | None = None) -> list[StorageFileInfo]:
        parent = folder_id or "root"
        data = await self._get(user_id, "/files", params={
            "q": f"'{parent}' in parents and trashed = false",
            "fields": f"files({FILE_FIELDS})",
            "orderBy": "modifiedTime desc",
            "pageSize": 100,
        })
        return [self._normalize(item) for item in data.get("files", [])]

    async def search_files(self, user_id: str, query: str) -> list[StorageFileInfo]:
        escaped = query.replace("\\", "\\\\").replace("'", "\\'")
        data = await self._get(user_id, "/files", params={
            "q": f"fullText contains '{escaped}' and trashed = false",
            "fields": f"files({FILE_FIELDS})",
            "orderBy": "modifiedTime desc",
            "pageSize": 50,
        })
        return [
            self._normalize(item)
            for item in data.get("files", [])
            if item.get("mimeType") != GOOGLE_FOLDER_MIME
        ]

    async def get_file_metadata(self, user_id: str, file_id: str) -> StorageFileInfo:
        data = await self._get(user_id, f"/files/{file_id}", params={"fields": FILE_FIELDS})
        return self._normalize(data)

    async def extract_file_content(self, user_id: str, file_id: str) -> Content:
        meta = await self.get_file_metadata(user_id, file_id)
        export_mime = GOOGLE_NATIVE_EXPORT_MAP.get(meta.mime_type or "")

        if export_mime:
            data = await self._download(
                user_id, f"/files/{file_id}/export", params={"mimeType": export_mime}
            )
            # Native files report no size until exported
            assert_size_allowed(len(data), meta.name)
            return await self._build_content(meta, data, export_mime, was_exported=True)

        assert_size_allowed(meta.size, meta.name)
        data = await self._download(user_id, f"/files/{file_id}", params={"alt": "media"})
        return await self._build_content(meta, data, meta.mime_type)

    def _normalize(self, item: dict[str, Any]) -> StorageFileInfo:
        mime_type = item.get("mimeType")
        is_folder = mime_type == GOOGLE_FOLDER_MIME
        try:
            size = int(item.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        return StorageFileInfo(
            id=item["id"],
            name=item.get("name", ""),
            provider=self.provider_id,
            size=size,
            last_modified=item.get("modifiedTime"),
            mime_type=None if is_folder else mime_type,
            is_folder=is_folder,
            web_url=item.get("webViewLink"),
            category=self._category_for(mime_type, is_folder),
            is_google_native=mime_type in GOOGLE_NATIVE_EXPORT_MAP,
        )
