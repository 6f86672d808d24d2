"""API routes for embedding, search and grounded answering."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import AfterValidator, BaseModel, Field

from grounded_rag.api.dependencies import get_pipeline
from grounded_rag.rag.models import AskResult
from grounded_rag.rag.pipeline import AskPipeline
from grounded_rag.vectorstore.models import RetrievedChunk

router = APIRouter(prefix="/api", tags=["RAG"])

MAX_TOP_K = 50


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


class EmbedRequest(BaseModel):
    """Request body for embedding a text."""

    text: NonBlankStr = Field(description="Text to embed")
    debug: bool = Field(default=False, description="Include the vector in the response")


class EmbedResponse(BaseModel):
    """Embedding summary; the vector itself only in debug mode."""

    embedding_id: str = Field(description="Content fingerprint")
    vector_dim: int = Field(description="Vector dimension")
    vector: list[float] | None = Field(default=None, description="Vector (debug only)")


class SearchRequest(BaseModel):
    """Request body for similarity search."""

    query: NonBlankStr = Field(description="Search query")
    top_k: int = Field(default=5, ge=1, le=MAX_TOP_K, description="Number of results")


class SearchResponse(BaseModel):
    """Similarity search results, best first."""

    results: list[RetrievedChunk] = Field(description="Matching chunks")


class AskRequest(BaseModel):
    """Request body for a grounded question."""

    question: NonBlankStr = Field(description="Question to answer")
    top_k: int = Field(default=4, ge=1, le=MAX_TOP_K, description="Chunks to retrieve")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Sampling temperature")


PipelineDep = Annotated[AskPipeline, Depends(get_pipeline)]


@router.post(
    "/embed",
    response_model=EmbedResponse,
    response_model_exclude_none=True,
)
async def embed_endpoint(request: EmbedRequest, pipeline: PipelineDep) -> EmbedResponse:
    """Embed a text and return its fingerprint and dimension."""
    result = await pipeline.embed(request.text)
    return EmbedResponse(
        embedding_id=result.id,
        vector_dim=result.dimensions,
        vector=result.vector if request.debug else None,
    )


@router.post("/search", response_model=SearchResponse)
async def search_endpoint(request: SearchRequest, pipeline: PipelineDep) -> SearchResponse:
    """Return the chunks closest to the query."""
    results = await pipeline.search(request.query, request.top_k)
    return SearchResponse(results=results)


@router.post("/ask", response_model=AskResult)
async def ask_endpoint(request: AskRequest, pipeline: PipelineDep) -> AskResult:
    """Answer a question from the indexed knowledge, citing sources."""
    return await pipeline.ask(
        request.question,
        top_k=request.top_k,
        temperature=request.temperature,
    )
