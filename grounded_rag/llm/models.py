"""LLM data models."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A message in a conversation.

    Attributes:
        role: The role of the message sender.
        content: The message content.
    """

    role: Role = Field(description="Message role")
    content: str = Field(description="Message content")


class Usage(BaseModel):
    """Token accounting reported by the provider."""

    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")


class GenerationResult(BaseModel):
    """Result from a chat-completion call.

    ``content`` is None when the provider is not configured or returned no
    message content.

    Attributes:
        content: The generated text.
        model: Model reported by the provider.
        usage: Token usage reported by the provider.
        raw: Raw provider response body.
    """

    content: str | None = Field(default=None, description="Generated text")
    model: str | None = Field(default=None, description="Model used")
    usage: Usage | None = Field(default=None, description="Token usage")
    raw: str | None = Field(default=None, description="Raw response body")

    @property
    def has_content(self) -> bool:
        """Whether the provider produced usable text."""
        return bool(self.content and self.content.strip())
