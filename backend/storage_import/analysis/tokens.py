"""
TokenServiceClient — fetches a user's OAuth access token for a provider.

The token service owns refresh; it always hands back a usable token or
an error.  A 404 means the user never connected that account.
"""

from __future__ import annotations

from storage_import.core.config import settings
from storage_import.core.http import HttpServiceClient
from storage_import.pipeline.errors import ExternalServiceError


class ProviderNotConnectedError(ExternalServiceError):
    """The user has no stored credentials for this provider."""

    code = "PROVIDER_NOT_CONNECTED"


class TokenServiceClient(HttpServiceClient):
    service_name = "token-service"

    def __init__(self, base_url: str | None = None, **kwargs) -> None:
        kwargs.setdefault("api_key", settings.SERVICE_API_KEY or None)
        super().__init__(base_url or settings.TOKEN_SERVICE_BASE_URL, **kwargs)

    async def get_access_token(self, user_id: str, provider: str) -> str:
        try:
            data = await self._request_json("GET", f"/users/{user_id}/tokens/{provider}")
        except ExternalServiceError as exc:
            if exc.status_code == 404:
                raise ProviderNotConnectedError(
                    f"No tokens found for {provider}",
                    status_code=404,
                    details={"user_id": user_id, "provider": provider},
                ) from exc
            raise

        token = data.get("access_token")
        if not token:
            raise ExternalServiceError(
                f"Token service returned no access token for {provider}",
                details={"user_id": user_id, "provider": provider},
            )
        return token
