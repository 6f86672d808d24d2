"""LLM client interface and the OpenAI-compatible implementation."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from grounded_rag.config import LLMSettings, get_settings
from grounded_rag.exceptions import LlmProviderUnavailable, truncate
from grounded_rag.http_client import response_deadline
from grounded_rag.llm.models import GenerationResult, Message, Role, Usage
from grounded_rag.logging_config import get_logger
from grounded_rag.observability.metrics import track_llm_request
from grounded_rag.retry import RetryPolicy

logger = get_logger(__name__)


class LLMClient(ABC):
    """Abstract base class for LLM clients.

    Defines the interface for generating text with LLMs.
    """

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from messages.

        Args:
            messages: Conversation messages.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens override.

        Returns:
            GenerationResult; ``content`` is None when nothing was generated.

        Raises:
            LlmProviderUnavailable: If the provider fails explicitly.
        """
        ...

    async def generate_text(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from a single user prompt."""
        return await self.generate(
            messages=[Message(role=Role.USER, content=prompt)],
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name."""
        ...

    async def close(self) -> None:
        """Release client resources."""


class OpenAICompatibleClient(LLMClient):
    """LLM client for OpenAI-compatible chat completion APIs.

    Without an API key no request is made and an empty result is returned,
    leaving the caller to fall back.
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the OpenAI-compatible client.

        Args:
            settings: LLM configuration.
            client: HTTP client (shared, or a mock for testing).
            retry_policy: Retry policy for provider calls.
        """
        self._settings = settings or get_settings().llm
        self._client = client
        self._owns_client = client is None
        self._retry = retry_policy or RetryPolicy()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(10.0, connect=3.0),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def configured(self) -> bool:
        """Whether a provider API key is available."""
        api_key = self._settings.api_key
        return api_key is not None and bool(api_key.get_secret_value().strip())

    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text using the chat completions API."""
        api_key = self._settings.api_key
        if api_key is None or not api_key.get_secret_value().strip():
            logger.debug("LLM provider not configured, skipping generation")
            return GenerationResult()

        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/chat/completions"
        payload = {
            "model": self._settings.model,
            "messages": [
                {"role": msg.role.value, "content": msg.content} for msg in messages
            ],
            "temperature": (
                self._settings.temperature if temperature is None else temperature
            ),
            "max_tokens": max_tokens or self._settings.max_tokens,
        }
        headers = {"Authorization": f"Bearer {api_key.get_secret_value()}"}

        async def _post() -> httpx.Response:
            async with response_deadline(client):
                response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return response

        start = time.perf_counter()
        try:
            response = await self._retry.call(_post, name="chat completion")

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"LLM request failed: {status}")
            track_llm_request(self.model_name, time.perf_counter() - start, 0, 0, False)
            raise LlmProviderUnavailable(
                f"LLM provider returned {status}",
                details={"status": status, "body": truncate(e.response.text, 200)},
            ) from e

        except httpx.HTTPError as e:
            logger.error(f"LLM connection error: {e!r}")
            track_llm_request(self.model_name, time.perf_counter() - start, 0, 0, False)
            raise LlmProviderUnavailable(
                f"LLM provider request failed: {type(e).__name__}",
                details={"cause": truncate(e, 200)},
            ) from e

        result = self._parse(response)
        usage = result.usage or Usage()
        track_llm_request(
            result.model or self.model_name,
            time.perf_counter() - start,
            usage.prompt_tokens,
            usage.completion_tokens,
        )
        return result

    def _parse(self, response: httpx.Response) -> GenerationResult:
        """Parse a chat completion response.

        A well-formed response without choices or content yields a result
        with ``content=None``.

        Raises:
            LlmProviderUnavailable: If the body is not a JSON object.
        """
        raw = response.text
        try:
            data = response.json()
        except ValueError as e:
            raise LlmProviderUnavailable(
                "Invalid response from LLM provider",
                details={"body": truncate(raw, 200)},
            ) from e
        if not isinstance(data, dict):
            raise LlmProviderUnavailable(
                "Invalid response from LLM provider",
                details={"body": truncate(raw, 200)},
            )

        content = _first_message_content(data)
        usage = _parse_usage(data.get("usage"))
        model = data.get("model")

        return GenerationResult(
            content=content,
            model=model if isinstance(model, str) and model else self._settings.model,
            usage=usage,
            raw=raw,
        )


def _first_message_content(data: dict[str, Any]) -> str | None:
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


def _parse_usage(usage_data: Any) -> Usage | None:
    """Token usage is optional; an unusable block is dropped."""
    if not isinstance(usage_data, dict):
        return None
    try:
        return Usage(
            prompt_tokens=usage_data.get("prompt_tokens") or 0,
            completion_tokens=usage_data.get("completion_tokens") or 0,
            total_tokens=usage_data.get("total_tokens") or 0,
        )
    except PydanticValidationError:
        logger.warning("Ignoring malformed usage block from LLM provider")
        return None
