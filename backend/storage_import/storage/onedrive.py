"""
OneDriveProvider — Microsoft Graph implementation of StorageProvider.

Reuses the user's Microsoft (Outlook) OAuth token.
"""

from __future__ import annotations

from typing import Any

from storage_import.core.config import settings
from storage_import.pipeline.context import Content
from storage_import.pipeline.errors import UnsupportedFileTypeError
from storage_import.storage.base import ConnectionStatus, StorageFileInfo, StorageProvider
from storage_import.storage.content_extractor import assert_size_allowed

ITEM_FIELDS = "id,name,size,lastModifiedDateTime,file,folder,parentReference,webUrl"


class OneDriveProvider(StorageProvider):
    provider_id = "onedrive"
    display_name = "OneDrive"
    token_key = "outlook"
    auth_url = "/api/auth/outlook/reauth"

    def __init__(self, tokens, base_url: str | None = None, **kwargs) -> None:
        super().__init__(tokens, base_url or settings.MICROSOFT_GRAPH_BASE_URL, **kwargs)

    async def check_connection(self, user_id: str) -> ConnectionStatus:
        return await self._connection_status(user_id, "/me/drive", **{"$select": "id"})

    async def list_files(self, user_id: str, folder_id: str | None = None) -> list[StorageFileInfo]:
        path = f"/me/drive/items/{folder_id}/children" if folder_id else "/me/drive/root/children"
        data = await self._get(user_id, path, params={
            "$select": ITEM_FIELDS,
            "$top": 100,
            "$orderby": "lastModifiedDateTime desc",
        })
        return [self._normalize(item) for item in data.get("value", [])]

    async def search_files(self, user_id: str, query: str) -> list[StorageFileInfo]:
        escaped = query.replace("'", "''")
        data = await self._get(user_id, f"/me/drive/root/search(q='{escaped}')", params={
            "$select": ITEM_FIELDS,
            "$top": 50,
        })
        return [self._normalize(item) for item in data.get("value", []) if item.get("file")]

    async def get_file_metadata(self, user_id: str, file_id: str) -> StorageFileInfo:
        data = await self._get(user_id, f"/me/drive/items/{file_id}", params={"$select": ITEM_FIELDS})
        return self._normalize(data)

    async def extract_file_content(self, user_id: str, file_id: str) -> Content:
        meta = await self.get_file_metadata(user_id, file_id)
        if not meta.mime_type:
            raise UnsupportedFileTypeError(
                f'File "{meta.name}" has no recognized MIME type.',
                details={"file_id": file_id},
            )
        assert_size_allowed(meta.size, meta.name)

        data = await self._download(user_id, f"/me/drive/items/{file_id}/content", follow_redirects=True)
        return await self._build_content(meta, data, meta.mime_type)

    def _normalize(self, item: dict[str, Any]) -> StorageFileInfo:
        file_facet = item.get("file") or {}
        folder_facet = item.get("folder")
        mime_type = file_facet.get("mimeType")
        is_folder = folder_facet is not None
        return StorageFileInfo(
            id=item["id"],
            name=item.get("name", ""),
            provider=self.provider_id,
            size=item.get("size") or 0,
            last_modified=item.get("lastModifiedDateTime"),
            mime_type=mime_type,
            is_folder=is_folder,
            child_count=(folder_facet or {}).get("childCount", 0),
            parent_folder=(item.get("parentReference") or {}).get("name"),
            web_url=item.get("webUrl"),
            category=self._category_for(mime_type, is_folder),
        )
