"""
Pydantic models for the Resume Q&A API.

Request and response bodies use camelCase on the wire to match the
frontend; Python code uses snake_case attribute names.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialising fields as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ModelCandidate(BaseModel):
    """One entry of the ordered chat-model fallback list."""

    model: str = Field(..., min_length=1, description="Model identifier")
    base_url: str = Field(..., description="OpenAI-compatible API base URL")


class ResumeRecord(CamelModel):
    """
    Metadata of a stored resume.

    Attributes:
        id: Store-assigned identifier.
        name: Display name given at upload.
        file_name: Original filename of the upload.
        file_url: Public URL, or an inline data URI for the local store.
        uploaded_at: Upload timestamp when the store records one.
    """

    id: str
    name: str
    file_name: str
    file_url: str
    uploaded_at: datetime | None = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> str:
        """Stores may hand back UUIDs or integer keys."""
        return str(v)


class UploadResumeResponse(CamelModel):
    """Response body of ``POST /api/upload-resume``."""

    resume_id: str
    public_url: str


class AskResumeRequest(CamelModel):
    """
    Request body of ``POST /api/ask-resume``.

    Exactly one resume reference is used, in priority order
    ``resumeId`` > ``resumeUrl`` > ``resumeData``. ``resumeData`` may be an
    inline ``data:`` URI of the PDF or text/JSON that was already extracted.
    All fields are optional here so missing ones are reported as 400.
    """

    resume_id: str | None = None
    resume_url: str | None = None
    resume_data: str | dict[str, Any] | list[Any] | None = None
    question: str | None = None


class AskResumeResponse(CamelModel):
    """Response body of ``POST /api/ask-resume``."""

    answer: str


class ResumeListResponse(CamelModel):
    """Response for listing stored resumes."""

    resumes: list[ResumeRecord]
    total: int


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""

    error: str


# Error statuses shared by every API route, for the OpenAPI schema
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing or malformed input"},
    404: {"model": ErrorResponse, "description": "Resume reference not found"},
    500: {"model": ErrorResponse, "description": "Internal service failure"},
}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    message: str = Field(default="Service is running")
    version: str = Field(default="1.0.0")
