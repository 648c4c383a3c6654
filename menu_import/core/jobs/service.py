"""
Menu Import Service
Facade over upload, status polling and change application for import jobs.
"""

import logging
from pathlib import PurePath
from typing import List, Optional

from sqlalchemy.orm import Session

from menu_import.config import get_settings
from menu_import.core.jobs.applier import ChangeApplier
from menu_import.database.models import MenuImportJob
from menu_import.database.repositories import ImportJobRepository, MenuRepository
from menu_import.exceptions import (
    FileTooLarge,
    JobNotFound,
    JobNotReady,
    StoreOwnershipMismatch,
    UnsupportedFileType,
)
from menu_import.models.domain import (
    ALLOWED_FILE_TYPES,
    AppliedCounts,
    ApplyResult,
    ApplySelection,
    ImportJobInfo,
    ImportJobStatus,
    MenuComparisonData,
    UploadResult,
)
from menu_import.services.storage import StorageService

logger = logging.getLogger(__name__)

# MIME type -> declared file type
MIME_TYPE_MAP = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xlsx",
    "text/csv": "csv",
    "application/json": "json",
    "text/markdown": "md",
    "text/plain": "txt",
}


def resolve_file_type(content_type: Optional[str], filename: str) -> str:
    """Declared type from MIME type, falling back to the filename extension."""
    file_type = MIME_TYPE_MAP.get((content_type or "").split(";")[0].strip().lower())
    if file_type is None:
        ext = PurePath(filename or "").suffix.lstrip(".").lower()
        if ext in ALLOWED_FILE_TYPES:
            file_type = ext
    if file_type is None:
        raise UnsupportedFileType(
            f"Unsupported file type: {content_type}. "
            f"Allowed types: {', '.join(ALLOWED_FILE_TYPES)}"
        )
    return file_type


class MenuImportService:
    """Import job operations scoped to the requesting merchant"""

    def __init__(
        self, db: Session, storage: StorageService, max_file_size_mb: Optional[int] = None
    ):
        self.db = db
        self.storage = storage
        self.jobs = ImportJobRepository(db)
        self.menus = MenuRepository(db)
        self.max_file_size_mb = max_file_size_mb or get_settings().MAX_FILE_SIZE_MB

    def upload_file(
        self,
        merchant_id: str,
        store_id: str,
        *,
        filename: str,
        content_type: Optional[str],
        content: bytes,
    ) -> UploadResult:
        """
        Store an uploaded menu file and create its import job.

        The caller schedules background processing for the returned job id.
        """
        self._require_store(store_id, merchant_id)

        file_type = resolve_file_type(content_type, filename)

        size_mb = len(content) / (1024 * 1024)
        if size_mb > self.max_file_size_mb:
            raise FileTooLarge(f"File too large. Max size: {self.max_file_size_mb}MB")

        file_key = self.storage.new_file_key(store_id, file_type)
        self.storage.save_file(file_key, content)

        job = self.jobs.create(
            store_id=store_id,
            original_filename=filename,
            file_type=file_type,
            file_key=file_key,
        )
        logger.info("Created import job %s for store %s (%s)", job.id, store_id, file_type)
        return UploadResult(job_id=job.id, status=ImportJobStatus(job.status))

    def get_job_status(self, merchant_id: str, job_id: str) -> ImportJobInfo:
        job = self.jobs.get(job_id)
        if job is None:
            raise JobNotFound("Import job not found")

        if job.store is None or job.store.merchant_id != merchant_id:
            raise StoreOwnershipMismatch("You do not have permission to view this import job")

        return _job_info(job)

    def apply_changes(
        self, merchant_id: str, store_id: str, job_id: str, selections: List[ApplySelection]
    ) -> ApplyResult:
        """
        Apply the selected changes of a READY job.

        Marks the job COMPLETED on success. On failure the job is marked FAILED
        and the error re-raised; writes already committed stay in place.
        """
        store = self._require_store(store_id, merchant_id)

        job = self.jobs.get(job_id, store_id=store_id)
        if job is None:
            raise JobNotFound("Import job not found")

        if job.status != ImportJobStatus.READY.value:
            raise JobNotReady(
                f"Import job is not ready for application. Current status: {job.status}"
            )

        if not any(s.action == "apply" for s in selections):
            self.jobs.mark_completed(job_id)
            return ApplyResult(success=True, applied=AppliedCounts())

        try:
            comparison = MenuComparisonData.model_validate(job.comparison_data)
            # VAT groups may have changed since extraction
            applier = ChangeApplier(
                self.menus, store_id, self.menus.vat_code_to_id(store.merchant_id)
            )
            applied = applier.apply(comparison, selections)
        except Exception as e:
            self.db.rollback()
            logger.error("Applying job %s failed: %s", job_id, e, exc_info=True)
            self.jobs.mark_failed(job_id, str(e) or "Unknown error")
            raise

        self.jobs.mark_completed(job_id)
        logger.info(
            "Applied job %s: %d categories, %d items, %d option groups",
            job_id,
            applied.categories,
            applied.items,
            applied.option_groups,
        )
        return ApplyResult(success=True, applied=applied)

    def _require_store(self, store_id: str, merchant_id: str):
        store = self.menus.get_store(store_id)
        if store is None or store.merchant_id != merchant_id:
            raise StoreOwnershipMismatch("Store not found")
        return store


def _job_info(job: MenuImportJob) -> ImportJobInfo:
    return ImportJobInfo(
        id=job.id,
        store_id=job.store_id,
        original_filename=job.original_filename,
        file_type=job.file_type,
        status=ImportJobStatus(job.status),
        error_message=job.error_message,
        comparison_data=(
            MenuComparisonData.model_validate(job.comparison_data)
            if job.comparison_data
            else None
        ),
        created_at=job.created_at,
    )
