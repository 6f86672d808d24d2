"""Grounded answer synthesis with an extractive fallback."""

from collections.abc import Sequence

from grounded_rag.llm.client import LLMClient
from grounded_rag.llm.prompts import GroundedPromptTemplate
from grounded_rag.logging_config import get_logger
from grounded_rag.rag.models import SynthesisResult
from grounded_rag.vectorstore.models import RetrievedChunk

logger = get_logger(__name__)

NO_CONTEXT_ANSWER = "I don't know."
MAX_INLINE_CITATIONS = 3
EXCERPT_LENGTH = 100


def extractive_answer(chunks: Sequence[RetrievedChunk]) -> str:
    """Deterministic answer built from the chunks alone.

    Inline citations for the first three chunks, then a ``Sources:`` list
    with id, two-decimal score and a 100-character excerpt per chunk.
    """
    if not chunks:
        return NO_CONTEXT_ANSWER

    citations = " ".join(f"[{chunk.id}]" for chunk in chunks[:MAX_INLINE_CITATIONS])
    sources = "\n".join(
        f"- {chunk.id} ({chunk.score:.2f}): {chunk.text[:EXCERPT_LENGTH]}"
        for chunk in chunks
    )
    return (
        f"Based on the provided context, here is a concise answer. {citations}"
        f"\n\nSources:\n{sources}"
    )


class AnswerSynthesizer:
    """Builds the grounded prompt and produces the final answer.

    The provider's text is used verbatim when present. When the provider is
    not configured or returns no content, the answer is extracted from the
    chunks. Explicit provider errors propagate as LlmProviderUnavailable.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_template: GroundedPromptTemplate | None = None,
    ) -> None:
        self._llm_client = llm_client
        self._prompt_template = prompt_template or GroundedPromptTemplate()

    def build_prompt(self, question: str, chunks: Sequence[RetrievedChunk]) -> str:
        return self._prompt_template.build(question, [chunk.text for chunk in chunks])

    async def synthesize(
        self,
        question: str,
        chunks: Sequence[RetrievedChunk],
        temperature: float,
    ) -> SynthesisResult:
        """Answer ``question`` from ``chunks``.

        Args:
            question: User question.
            chunks: Retrieved chunks, in retrieval order.
            temperature: Sampling temperature for the provider.

        Returns:
            SynthesisResult with the answer and provider accounting.

        Raises:
            LlmProviderUnavailable: If the provider fails explicitly.
        """
        prompt = self.build_prompt(question, chunks)
        generation = await self._llm_client.generate_text(prompt, temperature=temperature)

        if generation.has_content:
            return SynthesisResult(
                answer=generation.content or "",
                raw_output=generation.raw or "",
                prompt=prompt,
                model=generation.model,
                usage=generation.usage,
            )

        logger.warning(
            "No content from LLM provider, using extractive answer",
            extra={"chunks": len(chunks)},
        )
        return SynthesisResult(
            answer=extractive_answer(chunks),
            raw_output=generation.raw or "",
            prompt=prompt,
            fallback_used=True,
        )
