# menu_import/services/storage.py
# Blob storage for uploaded menu files, addressed by key

import uuid
from pathlib import Path
from typing import Optional

from menu_import.exceptions import MenuImportError


class FileNotStored(MenuImportError):
    """No blob exists under the requested key."""


class StorageService:
    # Saves uploaded files under a root directory using "imports/<store>/<uuid>.<type>" keys

    def __init__(self, root_dir: Path):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def new_file_key(self, store_id: str, file_type: str) -> str:
        return f"imports/{store_id}/{uuid.uuid4()}.{file_type}"

    def path_for(self, key: str) -> Path:
        # Keys never escape the storage root
        path = (self.root_dir / key).resolve()
        if self.root_dir.resolve() not in path.parents:
            raise MenuImportError(f"Invalid storage key: {key}")
        return path

    def save_file(self, key: str, content: bytes) -> str:
        dest = self.path_for(key)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(content)
        return key

    def get_file(self, key: str) -> bytes:
        path = self.path_for(key)
        if not path.exists():
            raise FileNotStored(f"File not found: {key}")
        return path.read_bytes()

    def exists(self, key: str) -> bool:
        return self.path_for(key).exists()


# Singleton
_storage: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get cached storage service instance."""
    global _storage
    if _storage is None:
        from menu_import.config import get_settings

        settings = get_settings()
        _storage = StorageService(root_dir=settings.UPLOADS_DIR)
    return _storage
