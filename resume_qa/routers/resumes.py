"""
Router for stored resume management.

Handles:
- Listing resumes
- Resume detail retrieval for the viewer
- Resume deletion
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from ..models import ERROR_RESPONSES, ResumeListResponse, ResumeRecord
from ..services.storage_service import ResumeStore, get_resume_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resumes", tags=["resumes"], responses=ERROR_RESPONSES)


@router.get("", response_model=ResumeListResponse)
def list_resumes(
    store: Annotated[ResumeStore, Depends(get_resume_store)],
) -> ResumeListResponse:
    """List stored resumes, newest first."""
    resumes = store.list_all()
    return ResumeListResponse(resumes=resumes, total=len(resumes))


@router.get("/{resume_id}", response_model=ResumeRecord)
def get_resume(
    resume_id: str,
    store: Annotated[ResumeStore, Depends(get_resume_store)],
) -> ResumeRecord:
    """Get one resume's metadata and file URL."""
    return store.get(resume_id)


@router.delete("/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume(
    resume_id: str,
    store: Annotated[ResumeStore, Depends(get_resume_store)],
) -> Response:
    """Delete a resume and its file."""
    store.delete(resume_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
