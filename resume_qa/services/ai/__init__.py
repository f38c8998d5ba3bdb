"""
AI service package for answering questions about resumes.

This package provides:
- answer: prompt construction and the ordered model-fallback loop
- transcription: vision-model OCR for scanned resumes

The AnswerService class binds the answer loop to configured credentials
and model candidates.
"""

import logging

from openai import AsyncOpenAI

from ...config import Settings, get_settings
from ...models import ModelCandidate
from ..exceptions import UnconfiguredError
from .answer import ANSWER_SYSTEM_PROMPT, build_messages, completion_text, generate_answer
from .transcription import transcribe_pages

logger = logging.getLogger(__name__)

__all__ = [
    "ANSWER_SYSTEM_PROMPT",
    "AnswerService",
    "CANNED_ANSWER",
    "build_messages",
    "completion_text",
    "generate_answer",
    "get_answer_service",
    "transcribe_pages",
]

CANNED_ANSWER = (
    "The AI assistant is not configured yet, so I can't answer questions about "
    "this resume. Set OPENROUTER_API_KEY on the server to enable answers."
)


class AnswerService:
    """
    Answers questions about resume text with a chat-completion API.

    Model candidates are tried in order; see ``generate_answer``.
    """

    def __init__(
        self,
        api_key: str | None,
        candidates: list[ModelCandidate],
        allow_canned: bool = False,
        timeout: float | None = None,
    ):
        """
        Initialize the answer service.

        Args:
            api_key: API key for the chat-completion endpoint(s).
            candidates: Ordered model candidates.
            allow_canned: Return a canned reply instead of failing when no key is set.
            timeout: Per-request timeout; None keeps the client default.
        """
        self.api_key = api_key
        self.candidates = candidates
        self.allow_canned = allow_canned
        self.timeout = timeout
        self._clients: dict[str, AsyncOpenAI] = {}

        if not self.api_key:
            logger.warning(
                "Answer service has no API key (%s). Set OPENROUTER_API_KEY in .env.",
                "canned replies" if allow_canned else "requests will fail",
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnswerService":
        return cls(
            api_key=settings.openrouter_api_key,
            candidates=settings.candidates,
            allow_canned=settings.allow_canned_answers,
        )

    def client_for(self, base_url: str) -> AsyncOpenAI:
        """Lazy-load one client per endpoint."""
        if not self.api_key:
            raise UnconfiguredError(
                "Chat completion API key not provided. Set OPENROUTER_API_KEY environment variable."
            )
        if base_url not in self._clients:
            kwargs: dict = {"api_key": self.api_key, "base_url": base_url}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self._clients[base_url] = AsyncOpenAI(**kwargs)
        return self._clients[base_url]

    async def answer(self, resume_text: str, question: str) -> str:
        """
        Answer a question about the resume text.

        Raises:
            UnconfiguredError: If no API key is set and canned replies are disabled.
            AllModelsUnavailableError: If every candidate failed.
        """
        if not self.api_key:
            if self.allow_canned:
                logger.warning("Returning canned answer: no chat completion API key")
                return CANNED_ANSWER
            raise UnconfiguredError(
                "Chat completion API key not provided. Set OPENROUTER_API_KEY environment variable."
            )

        return await generate_answer(
            resume_text,
            question,
            candidates=self.candidates,
            get_client=self.client_for,
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_answer_service: AnswerService | None = None


def get_answer_service() -> AnswerService:
    """Get or create the answer service singleton."""
    global _answer_service
    if _answer_service is None:
        _answer_service = AnswerService.from_settings(get_settings())
    return _answer_service
