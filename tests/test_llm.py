"""Tests for LLM module."""

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from grounded_rag.config import LLMSettings
from grounded_rag.exceptions import LlmProviderUnavailable
from grounded_rag.llm.client import OpenAICompatibleClient
from grounded_rag.llm.models import GenerationResult, Message, Role, Usage
from grounded_rag.llm.prompts import GroundedPromptTemplate
from grounded_rag.retry import RetryPolicy

HttpFactory = Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]

COMPLETION = {
    "model": "gpt-4o-mini-2024-07-18",
    "choices": [{"message": {"role": "assistant", "content": "Refunds take 5-7 days [doc-4]."}}],
    "usage": {"prompt_tokens": 50, "completion_tokens": 9, "total_tokens": 59},
}


def configured_settings(**overrides: object) -> LLMSettings:
    values: dict[str, object] = {
        "base_url": "http://provider/v1",
        "model": "gpt-4o-mini",
        "api_key": "sk-test",
    }
    values.update(overrides)
    return LLMSettings(**values)


class TestMessage:
    """Tests for Message model."""

    def test_create_message(self) -> None:
        """Message can be created."""
        msg = Message(role=Role.USER, content="Hello")
        assert msg.role == Role.USER
        assert msg.content == "Hello"


class TestGenerationResult:
    """Tests for GenerationResult model."""

    def test_empty_by_default(self) -> None:
        """A default result has no content."""
        result = GenerationResult()
        assert result.content is None
        assert not result.has_content

    def test_blank_content_is_not_usable(self) -> None:
        """Whitespace-only content does not count."""
        assert not GenerationResult(content="  \n").has_content
        assert GenerationResult(content="Yes.").has_content


class TestGroundedPromptTemplate:
    """Tests for the grounded prompt."""

    def test_exact_layout(self) -> None:
        """Prompt wording and line layout are fixed."""
        prompt = GroundedPromptTemplate().build(
            "What is the refund policy?",
            ["Refunds are issued within 5–7 business days after review.", "Second chunk."],
        )

        assert prompt == (
            'You are an assistant. Use only the following context. If answer unknown, say "I don\'t know".\n'
            "Context:\n"
            "---\n"
            "Refunds are issued within 5–7 business days after review.\n"
            "Second chunk.\n"
            "---\n"
            "Question: What is the refund policy?\n"
            "Provide concise answer and cite source ids.\n"
        )

    def test_no_chunks(self) -> None:
        """Empty context keeps both separators adjacent."""
        prompt = GroundedPromptTemplate().build("Why?", [])
        assert "Context:\n---\n---\nQuestion: Why?\n" in prompt


class TestOpenAICompatibleClient:
    """Tests for OpenAICompatibleClient."""

    def test_model_name(self) -> None:
        """Client returns configured model name."""
        client = OpenAICompatibleClient(settings=configured_settings(model="llama3:8b"))
        assert client.model_name == "llama3:8b"

    def test_configured(self) -> None:
        """Configured only with a non-blank API key."""
        assert OpenAICompatibleClient(settings=configured_settings()).configured
        assert not OpenAICompatibleClient(settings=configured_settings(api_key=None)).configured
        assert not OpenAICompatibleClient(settings=configured_settings(api_key="  ")).configured

    async def test_unconfigured_returns_empty(self, mock_http: HttpFactory) -> None:
        """Without an API key nothing is sent."""
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=COMPLETION)

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(settings=configured_settings(api_key=None), client=http)
            result = await client.generate_text("prompt")

        assert calls == []
        assert result == GenerationResult()

    async def test_generate(self, mock_http: HttpFactory, fast_retry: RetryPolicy) -> None:
        """Client posts a single user message and parses the completion."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=COMPLETION)

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            result = await client.generate_text("prompt", temperature=0.3)

        assert result.content == "Refunds take 5-7 days [doc-4]."
        assert result.model == "gpt-4o-mini-2024-07-18"
        assert result.usage == Usage(prompt_tokens=50, completion_tokens=9, total_tokens=59)
        assert result.raw is not None and "choices" in result.raw

        request = seen[0]
        assert request.url == "http://provider/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["messages"] == [{"role": "user", "content": "prompt"}]
        assert body["temperature"] == 0.3
        assert body["max_tokens"] == 1024

    async def test_no_choices(self, mock_http: HttpFactory, fast_retry: RetryPolicy) -> None:
        """A completion without choices yields no content but keeps the raw body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"choices": []})

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            result = await client.generate_text("prompt")

        assert result.content is None
        assert result.raw is not None
        assert json.loads(result.raw) == {"choices": []}

    async def test_http_error(self, mock_http: HttpFactory, fast_retry: RetryPolicy) -> None:
        """Provider error status surfaces with status and truncated body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="x" * 500)

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            with pytest.raises(LlmProviderUnavailable) as exc_info:
                await client.generate_text("prompt")

        assert exc_info.value.details["status"] == 401
        assert len(exc_info.value.details["body"]) == 200

    async def test_server_error_retried(
        self, mock_http: HttpFactory, fast_retry: RetryPolicy
    ) -> None:
        """5xx is retried before failing."""
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(502, text="bad gateway")

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            with pytest.raises(LlmProviderUnavailable):
                await client.generate_text("prompt")

        assert attempts == 3

    async def test_transport_error(self, mock_http: HttpFactory, fast_retry: RetryPolicy) -> None:
        """Connection failures surface after retries."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            with pytest.raises(LlmProviderUnavailable) as exc_info:
                await client.generate_text("prompt")

        assert "cause" in exc_info.value.details

    async def test_malformed_json(self, mock_http: HttpFactory, fast_retry: RetryPolicy) -> None:
        """Unparseable bodies are provider failures."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            with pytest.raises(LlmProviderUnavailable, match="Invalid response"):
                await client.generate_text("prompt")

    async def test_malformed_usage_is_dropped(
        self, mock_http: HttpFactory, fast_retry: RetryPolicy
    ) -> None:
        """An unusable usage block does not fail an otherwise valid answer."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "model": 5,
                    "choices": [{"message": {"content": "ok"}}],
                    "usage": {"prompt_tokens": "lots"},
                },
            )

        async with mock_http(handler) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            result = await client.generate_text("prompt")

        assert result.content == "ok"
        assert result.usage is None
        assert result.model == "gpt-4o-mini"

    async def test_slow_provider_times_out(
        self, mock_http: HttpFactory, fast_retry: RetryPolicy
    ) -> None:
        """A response that never completes in time is a provider failure."""
        attempts = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            await asyncio.sleep(1.0)
            return httpx.Response(200, json=COMPLETION)

        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport, timeout=0.05) as http:
            client = OpenAICompatibleClient(
                settings=configured_settings(), client=http, retry_policy=fast_retry
            )
            with pytest.raises(LlmProviderUnavailable, match="ReadTimeout"):
                await client.generate_text("prompt")

        assert attempts == 3
