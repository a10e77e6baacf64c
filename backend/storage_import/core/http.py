"""
Thin httpx wrapper shared by the service and provider clients.

Non-2xx responses and transport failures become ExternalServiceError so
callers deal with one exception type.  Pass an ``httpx.AsyncClient`` to
reuse a connection pool (or a MockTransport in tests); otherwise a
short-lived client is opened per request.
"""

from __future__ import annotations

from typing import Any

import httpx

from storage_import.core.config import settings
from storage_import.core.logging import get_logger
from storage_import.pipeline.errors import ExternalServiceError

logger = get_logger(__name__)

# Keep error bodies short in logs and exception payloads
MAX_ERROR_BODY_CHARS = 500


class HttpServiceClient:
    """Base class for JSON-over-HTTP collaborators."""

    service_name: str = "service"

    def __init__(
        self,
        base_url: str = "",
        *,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._client = client

    def _default_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = self._url(path)
        headers = {**self._default_headers(), **kwargs.pop("headers", {})}

        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=headers, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "HTTP request failed",
                service=self.service_name,
                method=method,
                url=url,
                error=str(exc),
            )
            raise ExternalServiceError(
                f"{self.service_name} request failed: {exc}",
                details={"method": method, "url": url},
            ) from exc

        if response.is_error:
            body = response.text[:MAX_ERROR_BODY_CHARS]
            logger.warning(
                "HTTP error response",
                service=self.service_name,
                method=method,
                url=url,
                status_code=response.status_code,
            )
            raise ExternalServiceError(
                f"{self.service_name} returned {response.status_code}",
                status_code=response.status_code,
                response_body=body,
                details={"method": method, "url": url},
            )
        return response

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._send(method, path, **kwargs)
        if not response.content:
            return {}
        return response.json()

    async def _request_bytes(self, method: str, path: str, **kwargs: Any) -> bytes:
        response = await self._send(method, path, **kwargs)
        return response.content
