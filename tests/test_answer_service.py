"""Tests for answer generation and the model fallback loop."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from resume_qa.models import ModelCandidate
from resume_qa.services.ai import (
    ANSWER_SYSTEM_PROMPT,
    CANNED_ANSWER,
    AnswerService,
    build_messages,
    completion_text,
    generate_answer,
)
from resume_qa.services.ai.answer import CandidateFailure
from resume_qa.services.exceptions import AllModelsUnavailableError, UnconfiguredError

BASE_URL = "https://openrouter.test/api/v1"


def completion(content: str | None):
    """Build an object shaped like an OpenAI chat completion."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def status_error(status_code: int, message: str) -> openai.APIStatusError:
    request = httpx.Request("POST", f"{BASE_URL}/chat/completions")
    response = httpx.Response(status_code, request=request, json={"error": {"message": message}})
    return openai.APIStatusError(message, response=response, body=None)


def fake_client(*outcomes):
    """Client whose completions.create returns or raises each outcome in turn."""
    create = AsyncMock(side_effect=list(outcomes))
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client, create


def candidates(*models: str) -> list[ModelCandidate]:
    return [ModelCandidate(model=m, base_url=BASE_URL) for m in models]


class TestBuildMessages:
    """Tests for prompt construction."""

    def test_two_messages(self):
        messages = build_messages("Jane Doe, Python", "What languages?")
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == ANSWER_SYSTEM_PROMPT

    def test_user_message_has_resume_then_question(self):
        content = build_messages("Jane Doe, Python", "What languages?")[1]["content"]
        assert content == "Resume data: Jane Doe, Python\n\nQuestion: What languages?"

    def test_system_prompt_restricts_to_resume(self):
        assert "ONLY from the resume" in ANSWER_SYSTEM_PROMPT


class TestCompletionText:
    """Tests for reading completions."""

    def test_returns_stripped_content(self):
        assert completion_text(completion("  Five years.  ")) == "Five years."

    def test_error_payload(self):
        response = SimpleNamespace(error={"message": "Provider returned error", "code": 502})
        with pytest.raises(CandidateFailure) as exc_info:
            completion_text(response)
        assert "Provider returned error" in str(exc_info.value)

    def test_no_choices(self):
        with pytest.raises(CandidateFailure):
            completion_text(SimpleNamespace(choices=[]))

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_completion(self, content):
        with pytest.raises(CandidateFailure):
            completion_text(completion(content))

    def test_unparsed_body(self):
        with pytest.raises(CandidateFailure):
            completion_text("<html>Bad gateway</html>")


class TestGenerateAnswer:
    """Tests for ordered model fallback."""

    def test_first_success_wins(self):
        client, create = fake_client(completion("A says hi"))
        answer = asyncio.run(
            generate_answer("resume", "q", candidates=candidates("a", "b"), get_client=lambda _: client)
        )
        assert answer == "A says hi"
        assert create.await_count == 1

    def test_falls_back_in_order(self):
        client, create = fake_client(
            status_error(429, "rate limited"),
            completion(""),
            completion("C answer"),
        )
        answer = asyncio.run(
            generate_answer(
                "resume", "q", candidates=candidates("a", "b", "c"), get_client=lambda _: client
            )
        )

        assert answer == "C answer"
        models = [call.kwargs["model"] for call in create.await_args_list]
        assert models == ["a", "b", "c"]

    def test_failed_candidate_not_retried(self):
        client, create = fake_client(
            status_error(500, "down"),
            completion("B answer"),
            completion("unused"),
        )
        asyncio.run(
            generate_answer(
                "resume", "q", candidates=candidates("a", "b", "c"), get_client=lambda _: client
            )
        )
        models = [call.kwargs["model"] for call in create.await_args_list]
        assert models == ["a", "b"]

    def test_connection_error_and_error_payload_fall_through(self):
        request = httpx.Request("POST", f"{BASE_URL}/chat/completions")
        client, create = fake_client(
            openai.APIConnectionError(request=request),
            SimpleNamespace(error={"message": "No endpoints found"}),
            ValueError("Expecting value: line 1 column 1"),
            completion("D answer"),
        )
        answer = asyncio.run(
            generate_answer(
                "resume", "q", candidates=candidates("a", "b", "c", "d"), get_client=lambda _: client
            )
        )
        assert answer == "D answer"
        assert create.await_count == 4

    def test_all_failing_reports_last_error(self):
        client, _ = fake_client(
            status_error(429, "rate limited"),
            status_error(503, "overloaded"),
            status_error(404, "model gone"),
        )
        with pytest.raises(AllModelsUnavailableError) as exc_info:
            asyncio.run(
                generate_answer(
                    "resume", "q", candidates=candidates("a", "b", "c"), get_client=lambda _: client
                )
            )

        error = exc_info.value
        assert error.status_code == 503
        assert error.attempts == 3
        assert "c: HTTP 404: model gone" in str(error)
        assert error.last_error == "c: HTTP 404: model gone"

    def test_each_candidate_uses_its_endpoint(self):
        other_client, other_create = fake_client(completion("other"))
        main_client, main_create = fake_client(status_error(500, "down"))
        clients = {BASE_URL: main_client, "https://other.test/v1": other_client}
        cands = [
            ModelCandidate(model="a", base_url=BASE_URL),
            ModelCandidate(model="b", base_url="https://other.test/v1"),
        ]

        answer = asyncio.run(
            generate_answer("resume", "q", candidates=cands, get_client=clients.__getitem__)
        )

        assert answer == "other"
        assert main_create.await_count == 1
        assert other_create.await_count == 1

    def test_no_candidates_is_unconfigured(self):
        with pytest.raises(UnconfiguredError):
            asyncio.run(generate_answer("resume", "q", candidates=[], get_client=lambda _: None))


class TestAnswerService:
    """Tests for AnswerService configuration handling."""

    def test_missing_key_raises_unconfigured(self):
        service = AnswerService(api_key=None, candidates=candidates("a"))
        with pytest.raises(UnconfiguredError) as exc_info:
            asyncio.run(service.answer("resume", "q"))
        assert "OPENROUTER_API_KEY" in str(exc_info.value)

    def test_missing_key_returns_canned_answer(self):
        service = AnswerService(api_key=None, candidates=candidates("a"), allow_canned=True)
        assert asyncio.run(service.answer("resume", "q")) == CANNED_ANSWER

    def test_uses_cached_client_per_endpoint(self):
        service = AnswerService(api_key="sk-test", candidates=candidates("a"))
        assert service.client_for(BASE_URL) is service.client_for(BASE_URL)

    def test_answer_delegates_to_fallback(self):
        service = AnswerService(api_key="sk-test", candidates=candidates("a", "b"))
        client, create = fake_client(status_error(429, "slow down"), completion("From B"))
        service._clients[BASE_URL] = client

        assert asyncio.run(service.answer("Jane Doe", "Who?")) == "From B"
        messages = create.await_args_list[0].kwargs["messages"]
        assert "Jane Doe" in messages[1]["content"]
