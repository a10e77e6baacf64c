"""
ProviderRegistry — resolves a storage provider by id.
"""

from __future__ import annotations

from storage_import.analysis.tokens import TokenServiceClient
from storage_import.pipeline.errors import UnknownProviderError
from storage_import.storage.base import StorageProvider
from storage_import.storage.google_drive import GoogleDriveProvider
from storage_import.storage.onedrive import OneDriveProvider


class ProviderRegistry:
    def __init__(self, providers: list[StorageProvider] | None = None) -> None:
        self._providers: dict[str, StorageProvider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: StorageProvider) -> None:
        self._providers[provider.provider_id] = provider

    def get(self, provider_id: str) -> StorageProvider:
        try:
            return self._providers[provider_id]
        except KeyError:
            raise UnknownProviderError(
                f"Unknown storage provider: {provider_id!r}",
                details={"available": self.provider_ids},
            ) from None

    @property
    def provider_ids(self) -> list[str]:
        return list(self._providers)

    def all(self) -> list[StorageProvider]:
        return list(self._providers.values())


def build_provider_registry(tokens: TokenServiceClient | None = None) -> ProviderRegistry:
    """Registry with every built-in provider sharing one token client."""
    tokens = tokens or TokenServiceClient()
    return ProviderRegistry([
        OneDriveProvider(tokens),
        GoogleDriveProvider(tokens),
    ])
