"""Vector store data models."""

from pydantic import BaseModel, ConfigDict, Field

# Point metadata is restricted to a closed set of JSON scalars.
PayloadValue = str | int | float | bool | None


class IndexPoint(BaseModel):
    """A point stored in the vector index.

    Attributes:
        id: Unique point identifier; re-upserting an id replaces the point.
        vector: The embedding vector.
        payload: Scalar metadata stored with the vector.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique point identifier")
    vector: list[float] = Field(description="Embedding vector")
    payload: dict[str, PayloadValue] = Field(
        default_factory=dict,
        description="Scalar metadata payload",
    )


class RetrievedChunk(BaseModel):
    """A chunk returned by the vector store.

    Attributes:
        id: Chunk identifier.
        text: Chunk text.
        score: Normalized similarity, 1.0 identical and 0.0 opposite.
        chunk_index: Position of the chunk within its document.
        source: Where the chunk came from.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Chunk identifier")
    text: str = Field(description="Chunk text")
    score: float = Field(ge=0.0, le=1.0, description="Normalized similarity score")
    chunk_index: int | None = Field(default=None, description="Chunk position")
    source: str | None = Field(default=None, description="Chunk source")
