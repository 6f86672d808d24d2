"""Ask pipeline data models."""

from pydantic import BaseModel, Field

from grounded_rag.llm.models import Usage
from grounded_rag.vectorstore.models import RetrievedChunk


class SynthesisResult(BaseModel):
    """Answer produced by the AnswerSynthesizer.

    Attributes:
        answer: Final answer text.
        raw_output: Raw provider output, empty when nothing was received.
        prompt: The grounded prompt that was built.
        model: Provider model, None on the extractive fallback.
        usage: Provider token usage, None on the extractive fallback.
        fallback_used: Whether the extractive fallback produced the answer.
    """

    answer: str = Field(description="Final answer")
    raw_output: str = Field(default="", description="Raw provider output")
    prompt: str = Field(description="Grounded prompt")
    model: str | None = Field(default=None, description="Provider model")
    usage: Usage | None = Field(default=None, description="Token usage")
    fallback_used: bool = Field(default=False, description="Extractive fallback used")


class AskResult(BaseModel):
    """Response envelope of one ask request.

    Attributes:
        answer: Final answer text.
        source_chunks: Retrieved chunks in retrieval order.
        raw_provider_output: Raw provider output.
        prompt: The grounded prompt.
        latency_ms: End-to-end pipeline latency.
        model: Provider model, None on fallback.
        usage: Token usage, None on fallback.
    """

    answer: str = Field(description="Final answer")
    source_chunks: list[RetrievedChunk] = Field(
        default_factory=list,
        description="Retrieved chunks",
    )
    raw_provider_output: str = Field(default="", description="Raw provider output")
    prompt: str = Field(description="Grounded prompt")
    latency_ms: int = Field(ge=0, description="Pipeline latency in milliseconds")
    model: str | None = Field(default=None, description="Provider model")
    usage: Usage | None = Field(default=None, description="Token usage")
