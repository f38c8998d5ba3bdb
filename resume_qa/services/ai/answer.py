"""
Answer generation over an ordered list of chat models.

Candidates are tried strictly one at a time, in configuration order. The
first candidate that returns a usable completion wins; a failing candidate
is never retried.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

import openai
from openai import AsyncOpenAI

from ...models import ModelCandidate
from ..exceptions import AllModelsUnavailableError, UnconfiguredError

logger = logging.getLogger(__name__)


# =============================================================================
# Prompt
# =============================================================================

ANSWER_SYSTEM_PROMPT = """You are an AI assistant helping answer questions about a resume.

Answer ONLY from the resume data provided in the user message.
If the resume does not contain the information needed, say that the resume does not mention it.
Do not invent employers, dates, degrees, skills or contact details.
Keep answers concise and factual."""


def build_messages(resume_text: str, question: str) -> list[dict[str, str]]:
    """Build the two-message prompt: fixed instructions, then resume and question."""
    return [
        {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"Resume data: {resume_text}\n\nQuestion: {question}",
        },
    ]


# =============================================================================
# Response handling
# =============================================================================


class CandidateFailure(Exception):
    """A single candidate produced an unusable response."""

    pass


def _error_detail(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def completion_text(response: Any) -> str:
    """
    Pull the answer text out of a chat completion.

    OpenRouter can report provider failures with a 200 status and an
    ``error`` object instead of ``choices``, so both are checked.

    Raises:
        CandidateFailure: On an error payload, missing choices or empty text.
    """
    error = getattr(response, "error", None)
    if error:
        raise CandidateFailure(f"error payload: {_error_detail(error)}")

    choices = getattr(response, "choices", None)
    if not choices:
        raise CandidateFailure("response contained no choices")

    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if not isinstance(content, str) or not content.strip():
        raise CandidateFailure("empty completion")

    return content.strip()


# =============================================================================
# Fallback loop
# =============================================================================


async def generate_answer(
    resume_text: str,
    question: str,
    *,
    candidates: Sequence[ModelCandidate],
    get_client: Callable[[str], AsyncOpenAI],
) -> str:
    """
    Ask each candidate in order until one answers.

    Args:
        resume_text: Extracted resume text.
        question: The user's question.
        candidates: Ordered model candidates.
        get_client: Returns the client for a candidate's base URL.

    Returns:
        The first usable completion, stripped.

    Raises:
        UnconfiguredError: If no candidates are configured.
        AllModelsUnavailableError: If every candidate failed.
    """
    if not candidates:
        raise UnconfiguredError(
            "No chat models configured. Set MODEL_CANDIDATES to a comma-separated list of model ids."
        )

    messages = build_messages(resume_text, question)
    last_error: str | None = None

    for attempt, candidate in enumerate(candidates, start=1):
        client = get_client(candidate.base_url)
        try:
            response = await client.chat.completions.create(
                model=candidate.model,
                messages=messages,
            )
            answer = completion_text(response)
        except openai.APIStatusError as e:
            last_error = f"{candidate.model}: HTTP {e.status_code}: {e.message}"
        except openai.APIError as e:
            # Connection errors, timeouts and bodies that failed to validate
            last_error = f"{candidate.model}: {e}"
        except ValueError as e:
            last_error = f"{candidate.model}: unparseable response: {e}"
        except CandidateFailure as e:
            last_error = f"{candidate.model}: {e}"
        else:
            logger.info(
                "Answer generated by %s (attempt %d/%d)",
                candidate.model,
                attempt,
                len(candidates),
            )
            return answer

        logger.warning(
            "Model candidate failed (attempt %d/%d): %s",
            attempt,
            len(candidates),
            last_error,
        )

    raise AllModelsUnavailableError(
        f"All {len(candidates)} models are unavailable. Last error: {last_error}",
        last_error=last_error,
        attempts=len(candidates),
    )
