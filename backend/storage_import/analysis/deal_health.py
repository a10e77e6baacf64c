"""
DealHealthClient — HTTP client for the deal-health scoring service.

    POST /deals/{deal_id}/signals             → applied signals
    POST /deals/{deal_id}/competitors/detect  → detected competitors
    POST /deals/{deal_id}/score               → {"score": int, "health": str}
"""

from __future__ import annotations

from typing import Any

from storage_import.core.config import settings
from storage_import.core.http import HttpServiceClient


def _as_list(value: Any) -> list[dict[str, Any]]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        # Some endpoints answer {"signals": {...name: detail}} rather than a list
        return [{"name": key, **(val if isinstance(val, dict) else {"value": val})} for key, val in value.items()]
    return []


class DealHealthClient(HttpServiceClient):
    service_name = "deal-health"

    def __init__(self, base_url: str | None = None, **kwargs) -> None:
        kwargs.setdefault("api_key", settings.SERVICE_API_KEY or None)
        super().__init__(base_url or settings.DEAL_HEALTH_API_BASE_URL, **kwargs)

    async def apply_signals(
        self, deal_id: str, text: str, source_type: str, user_id: str
    ) -> list[dict[str, Any]]:
        data = await self._request_json(
            "POST",
            f"/deals/{deal_id}/signals",
            json={"text": text, "source_type": source_type, "user_id": user_id},
        )
        return _as_list(data.get("signals"))

    async def detect_competitors(self, deal_id: str, user_id: str, text: str) -> list[dict[str, Any]]:
        data = await self._request_json(
            "POST",
            f"/deals/{deal_id}/competitors/detect",
            json={"text": text, "user_id": user_id},
        )
        return _as_list(data.get("competitors"))

    async def score_deal(self, deal_id: str, user_id: str) -> dict[str, Any]:
        data = await self._request_json(
            "POST", f"/deals/{deal_id}/score", json={"user_id": user_id}
        )
        return {"score": data.get("score"), "health": data.get("health")}
