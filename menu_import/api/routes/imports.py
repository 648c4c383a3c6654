# menu_import/api/routes/imports.py
# Endpoints for uploading menu files, polling import jobs and applying changes

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, UploadFile

from menu_import.api.dependencies import get_import_service, get_merchant_id
from menu_import.api.schemas import ApplyChangesRequest
from menu_import.core.jobs.processor import run_import_job
from menu_import.core.jobs.service import MenuImportService
from menu_import.exceptions import (
    FileTooLarge,
    JobNotFound,
    JobNotReady,
    MenuImportError,
    StoreOwnershipMismatch,
    UnsupportedFileType,
)
from menu_import.models.domain import ApplyResult, ImportJobInfo, UploadResult

router = APIRouter(prefix="/api/imports", tags=["imports"])

ERROR_STATUS = {
    UnsupportedFileType: 400,
    FileTooLarge: 400,
    JobNotReady: 400,
    JobNotFound: 404,
    StoreOwnershipMismatch: 403,
}


def _to_http(error: MenuImportError) -> HTTPException:
    status_code = ERROR_STATUS.get(type(error), 500)
    return HTTPException(status_code=status_code, detail=str(error))


@router.post("/upload", response_model=UploadResult)
async def upload_menu_file(
    background_tasks: BackgroundTasks,
    store_id: Annotated[str, Form()],
    file: Annotated[UploadFile, File()],
    merchant_id: Annotated[str, Depends(get_merchant_id)],
    service: Annotated[MenuImportService, Depends(get_import_service)],
):
    # Store the file, create the job and process it in the background
    content = await file.read()
    try:
        result = service.upload_file(
            merchant_id,
            store_id,
            filename=file.filename or "",
            content_type=file.content_type,
            content=content,
        )
    except MenuImportError as e:
        raise _to_http(e)

    background_tasks.add_task(run_import_job, result.job_id)
    return result


@router.get("/{job_id}", response_model=ImportJobInfo)
def get_import_job(
    job_id: str,
    merchant_id: Annotated[str, Depends(get_merchant_id)],
    service: Annotated[MenuImportService, Depends(get_import_service)],
):
    # Poll job status and, once READY, the comparison
    try:
        return service.get_job_status(merchant_id, job_id)
    except MenuImportError as e:
        raise _to_http(e)


@router.post("/{job_id}/apply", response_model=ApplyResult)
def apply_import_changes(
    job_id: str,
    request: ApplyChangesRequest,
    merchant_id: Annotated[str, Depends(get_merchant_id)],
    service: Annotated[MenuImportService, Depends(get_import_service)],
):
    # Apply the user's selected changes
    try:
        return service.apply_changes(merchant_id, request.store_id, job_id, request.selections)
    except MenuImportError as e:
        raise _to_http(e)
