# menu_import/api/dependencies.py
"""FastAPI dependencies."""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from menu_import.config import Settings, get_settings
from menu_import.core.jobs.service import MenuImportService
from menu_import.database import get_db
from menu_import.services.storage import StorageService, get_storage_service


def get_config() -> Settings:
    """Get application settings."""
    return get_settings()


def get_storage(settings: Annotated[Settings, Depends(get_config)]) -> StorageService:
    """Get storage service."""
    return get_storage_service()


def get_merchant_id(x_merchant_id: Annotated[Optional[str], Header()] = None) -> str:
    """Merchant identity, set by the authenticating proxy."""
    if not x_merchant_id:
        raise HTTPException(status_code=401, detail="Missing X-Merchant-Id header")
    return x_merchant_id


def get_import_service(
    settings: Annotated[Settings, Depends(get_config)],
    storage: Annotated[StorageService, Depends(get_storage)],
    db: Session = Depends(get_db),
) -> MenuImportService:
    """Get import service bound to the request's DB session."""
    return MenuImportService(db, storage, max_file_size_mb=settings.MAX_FILE_SIZE_MB)
