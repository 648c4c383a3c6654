"""
Import job processing: the extraction phase of an import job.

PROCESSING -> READY on success, PROCESSING -> FAILED on any error.
"""

import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from menu_import.config import get_settings
from menu_import.core.diff.comparer import compare_menus
from menu_import.core.extraction.ai_extractor import (
    ExtractionOptions,
    MenuExtractor,
    ModelConfig,
    default_model_config,
)
from menu_import.core.extraction.text_extractor import TextExtractor
from menu_import.database.db import SessionLocal
from menu_import.database.repositories import ImportJobRepository, MenuRepository
from menu_import.exceptions import JobNotFound
from menu_import.models.domain import (
    ExistingCategoryRef,
    ExistingItemRef,
    ExistingMenuData,
    ImportJobStatus,
)
from menu_import.services.llm_client import get_llm_client, set_store_context
from menu_import.services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)


def _context_refs(existing: ExistingMenuData):
    categories = [ExistingCategoryRef(id=c.id, name=c.name) for c in existing.categories]
    items = [
        ExistingItemRef(id=i.id, name=i.name, category_id=c.id)
        for c in existing.categories
        for i in c.items
    ]
    return categories, items


async def process_import_job(
    job_id: str,
    *,
    session_factory: Callable[[], Session] = SessionLocal,
    storage: Optional[StorageService] = None,
    extractor: Optional[MenuExtractor] = None,
    model: Optional[ModelConfig] = None,
) -> None:
    """
    Run the extraction phase for one job.

    Jobs not in PROCESSING are left untouched. Errors are recorded on the job
    as FAILED and re-raised.
    """
    settings = get_settings()
    db = session_factory()
    try:
        jobs = ImportJobRepository(db)
        menus = MenuRepository(db)

        job = jobs.get(job_id)
        if job is None:
            raise JobNotFound(f"Job {job_id} not found")

        if job.status != ImportJobStatus.PROCESSING.value:
            logger.debug("Job %s already processed (status %s)", job_id, job.status)
            return

        try:
            logger.info("Processing menu import job %s", job_id)
            storage = storage or get_storage_service()
            extractor = extractor or MenuExtractor(llm_client=get_llm_client())

            # Step 1: Download the uploaded file
            content = storage.get_file(job.file_key)

            # Step 2: Extract text
            result = TextExtractor(settings.MAX_TEXT_LENGTH).extract(content, job.file_type)
            logger.debug("Job %s: extracted %d characters", job_id, len(result.text))

            # Step 3: Existing menu and VAT groups for context
            store = menus.get_store(job.store_id)
            existing = menus.get_existing_menu(job.store_id)
            vat_groups = menus.list_vat_groups(store.merchant_id) if store else []
            set_store_context(store.name if store else None)
            category_refs, item_refs = _context_refs(existing)

            # Step 4: AI extraction
            extracted = await extractor.extract(
                result.text,
                ExtractionOptions(
                    model=model or default_model_config(),
                    existing_categories=category_refs,
                    existing_items=item_refs,
                    vat_groups=vat_groups,
                ),
            )
            logger.info(
                "Job %s: AI extraction complete (%d categories, %d items, "
                "%d option groups, confidence %.0f%%)",
                job_id,
                len(extracted.categories),
                sum(len(c.items) for c in extracted.categories),
                len(extracted.option_groups),
                extracted.confidence * 100,
            )

            # Step 5: Compare with the existing menu
            comparison = compare_menus(
                extracted, existing, {v.code: v.id for v in vat_groups}
            )
            summary = comparison.summary
            logger.info(
                "Job %s: comparison generated (categories +%d ~%d, items +%d ~%d, "
                "option groups +%d ~%d)",
                job_id,
                summary.new_categories,
                summary.updated_categories,
                summary.new_items,
                summary.updated_items,
                summary.new_option_groups,
                summary.updated_option_groups,
            )

            # Step 6: Persist and mark ready
            jobs.mark_ready(job_id, comparison.model_dump(mode="json", by_alias=True))
            logger.info("Job %s ready for review", job_id)

        except asyncio.CancelledError:
            db.rollback()
            logger.warning("Job %s cancelled during processing", job_id)
            jobs.mark_failed(job_id, "Processing was cancelled")
            raise
        except Exception as e:
            db.rollback()
            logger.error("Job %s failed: %s", job_id, e, exc_info=True)
            jobs.mark_failed(job_id, str(e) or "Unknown error")
            raise
    finally:
        db.close()


async def run_import_job(job_id: str) -> None:
    """Background entry point: failures are already recorded on the job."""
    try:
        await process_import_job(job_id)
    except Exception as e:
        logger.error("Background processing failed for job %s: %s", job_id, e)
