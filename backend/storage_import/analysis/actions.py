"""
ActionsServiceClient — asks the actions service to regenerate
recommended next actions from a processed import.
"""

from __future__ import annotations

from typing import Any

from storage_import.core.config import settings
from storage_import.core.http import HttpServiceClient


class ActionsServiceClient(HttpServiceClient):
    service_name = "actions"

    def __init__(self, base_url: str | None = None, **kwargs) -> None:
        kwargs.setdefault("api_key", settings.SERVICE_API_KEY or None)
        super().__init__(base_url or settings.ACTIONS_API_BASE_URL, **kwargs)

    async def generate_for_import(self, import_record_id: str, user_id: str) -> dict[str, Any]:
        return await self._request_json(
            "POST",
            f"/imports/{import_record_id}/actions/generate",
            json={"user_id": user_id, "source": "storage_file"},
        )
