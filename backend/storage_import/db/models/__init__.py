"""
Models package — re-exports Base and all models.

Import models here so `Base.metadata` picks up every table automatically.

When adding a new model:
    1. Create `storage_import/db/models/<table_name>.py`
    2. Import it here
"""

from storage_import.db.models.base import Base
from storage_import.db.models.storage_file import StorageFile

__all__ = [
    "Base",
    "StorageFile",
]
