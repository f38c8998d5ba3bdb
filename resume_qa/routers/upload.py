"""
Router for resume upload.

Handles:
- Storing an uploaded PDF resume under a display name
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from ..models import ERROR_RESPONSES, UploadResumeResponse
from ..services.exceptions import InvalidRequestError
from ..services.storage_service import ResumeStore, get_resume_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"], responses=ERROR_RESPONSES)


@router.post("/upload-resume", response_model=UploadResumeResponse)
async def upload_resume(
    store: Annotated[ResumeStore, Depends(get_resume_store)],
    name: Annotated[str | None, Form(description="Display name for the resume")] = None,
    file: Annotated[UploadFile | None, File(description="PDF resume")] = None,
) -> UploadResumeResponse:
    """
    Store a resume.

    Both fields are checked before anything is written; the returned id and
    URL refer to a file that has already been stored.
    """
    try:
        name = (name or "").strip()
        if not name or file is None or not file.filename:
            raise InvalidRequestError("Missing name or file")

        if not file.filename.lower().endswith(".pdf"):
            raise InvalidRequestError("Only PDF files are accepted")

        file_bytes = await file.read()
        if not file_bytes:
            raise InvalidRequestError("Empty file provided")

        logger.info("Uploading resume '%s': %s (%d bytes)", name, file.filename, len(file_bytes))

        record = await run_in_threadpool(
            store.save,
            file_bytes,
            name,
            file.filename,
            file.content_type or "application/pdf",
        )
        return UploadResumeResponse(resume_id=record.id, public_url=record.file_url)

    finally:
        if file is not None:
            await file.close()
