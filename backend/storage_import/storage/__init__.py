"""Cloud-storage providers and the shared text extraction they use."""

from storage_import.storage.base import ConnectionStatus, StorageFileInfo, StorageProvider
from storage_import.storage.factory import ProviderRegistry, build_provider_registry
from storage_import.storage.google_drive import GoogleDriveProvider
from storage_import.storage.onedrive import OneDriveProvider

__all__ = [
    "ConnectionStatus",
    "GoogleDriveProvider",
    "OneDriveProvider",
    "ProviderRegistry",
    "StorageFileInfo",
    "StorageProvider",
    "build_provider_registry",
]
