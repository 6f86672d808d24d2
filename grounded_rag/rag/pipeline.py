"""Ask pipeline orchestrator."""

import time

from grounded_rag.embeddings.cache import EmbeddingCache
from grounded_rag.embeddings.models import EmbeddingResult
from grounded_rag.logging_config import get_logger
from grounded_rag.observability.metrics import track_ask_request
from grounded_rag.rag.models import AskResult
from grounded_rag.rag.synthesizer import AnswerSynthesizer
from grounded_rag.vectorstore.models import RetrievedChunk
from grounded_rag.vectorstore.service import VectorStore

logger = get_logger(__name__)


class AskPipeline:
    """Orchestrates embedding, retrieval and answer synthesis.

    Steps run strictly in sequence. Nothing is retried here and errors from
    the components propagate unchanged.
    """

    def __init__(
        self,
        cache: EmbeddingCache,
        vector_store: VectorStore,
        synthesizer: AnswerSynthesizer,
    ) -> None:
        """Initialize the ask pipeline.

        Args:
            cache: Embedding cache wrapping the embedding client.
            vector_store: Store holding the indexed chunks.
            synthesizer: Grounded answer synthesizer.
        """
        self._cache = cache
        self._vector_store = vector_store
        self._synthesizer = synthesizer

    async def embed(self, text: str) -> EmbeddingResult:
        return await self._cache.get_or_compute(text)

    async def search(self, query: str, top_k: int = 5) -> list[RetrievedChunk]:
        """Embed ``query`` and return the ``top_k`` closest chunks."""
        embedding = await self._cache.get_or_compute(query)
        return await self._vector_store.search(embedding.vector, top_k)

    async def ask(
        self,
        question: str,
        top_k: int = 4,
        temperature: float = 0.0,
    ) -> AskResult:
        """Answer a question from the indexed knowledge.

        Args:
            question: The question to answer.
            top_k: Number of chunks to retrieve.
            temperature: Sampling temperature for the chat provider.

        Returns:
            AskResult with answer, sources, prompt and accounting.

        Raises:
            EmbeddingProviderUnavailable: If no question vector can be used.
            VectorStoreUnavailable: If retrieval fails.
            LlmProviderUnavailable: If the chat provider fails explicitly.
        """
        start = time.perf_counter()
        logger.info(
            "Processing ask request",
            extra={"question_length": len(question), "top_k": top_k},
        )

        try:
            chunks = await self.search(question, top_k)
            synthesis = await self._synthesizer.synthesize(
                question, chunks, temperature
            )
        except Exception:
            track_ask_request(time.perf_counter() - start, "error")
            raise

        elapsed = time.perf_counter() - start
        track_ask_request(elapsed, "fallback" if synthesis.fallback_used else "success")

        logger.info(
            "Ask request completed",
            extra={
                "chunks": len(chunks),
                "fallback_used": synthesis.fallback_used,
                "latency_ms": int(elapsed * 1000),
            },
        )

        return AskResult(
            answer=synthesis.answer,
            source_chunks=chunks,
            raw_provider_output=synthesis.raw_output,
            prompt=synthesis.prompt,
            latency_ms=int(elapsed * 1000),
            model=synthesis.model,
            usage=synthesis.usage,
        )
