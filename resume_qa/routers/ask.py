"""
Router for answering questions about a resume.

Handles:
- Resolving a resume reference (id, URL, inline data or extracted text)
- Extracting its text and asking the configured chat models
"""

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ..models import ERROR_RESPONSES, AskResumeRequest, AskResumeResponse, ErrorResponse
from ..services.ai import AnswerService, get_answer_service
from ..services.exceptions import InvalidRequestError
from ..services.storage_service import ResumeStore, get_resume_store
from ..services.text_extractor import TextExtractor, ensure_text, get_text_extractor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ask"], responses=ERROR_RESPONSES)


async def resolve_resume_text(
    payload: AskResumeRequest,
    store: ResumeStore,
    extractor: TextExtractor,
) -> str:
    """
    Turn the request's resume reference into text.

    Priority: resumeId, then resumeUrl, then resumeData. A ``data:`` URI in
    resumeData is extracted like a file; anything else in resumeData is
    treated as text extracted earlier.
    """
    if payload.resume_id:
        record = await run_in_threadpool(store.get, payload.resume_id)
        return await extractor.extract(record.file_url)

    if payload.resume_url:
        return await extractor.extract(payload.resume_url)

    data = payload.resume_data
    if isinstance(data, str) and data.startswith("data:"):
        return await extractor.extract(data)
    if isinstance(data, (dict, list)):
        data = json.dumps(data, ensure_ascii=False) if data else ""
    return ensure_text(data)


@router.post(
    "/ask-resume",
    response_model=AskResumeResponse,
    responses={503: {"model": ErrorResponse, "description": "Every candidate model failed"}},
)
async def ask_resume(
    payload: AskResumeRequest,
    store: Annotated[ResumeStore, Depends(get_resume_store)],
    extractor: Annotated[TextExtractor, Depends(get_text_extractor)],
    answer_service: Annotated[AnswerService, Depends(get_answer_service)],
) -> AskResumeResponse:
    """
    Answer a free-text question about a stored or referenced resume.

    Runs fetch, extract and answer strictly in sequence. Generation is never
    attempted when extraction fails or yields no text.
    """
    if not (payload.resume_id or payload.resume_url or payload.resume_data):
        raise InvalidRequestError("Missing resumeId, resumeUrl or resumeData")

    question = (payload.question or "").strip()
    if not question:
        raise InvalidRequestError("Missing question")

    resume_text = await resolve_resume_text(payload, store, extractor)
    logger.info("Answering question against %d characters of resume text", len(resume_text))

    answer = await answer_service.answer(resume_text, question)
    return AskResumeResponse(answer=answer)
