"""Embedding data models."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class EmbeddingResult(BaseModel):
    """Result of an embedding operation.

    Attributes:
        id: Content fingerprint of the embedded text.
        vector: The embedding vector.
        model: The model that produced the vector.
        created_at: When the vector was produced.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Content fingerprint")
    vector: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model used for embedding")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Creation timestamp",
    )

    @property
    def dimensions(self) -> int:
        """Number of dimensions in the vector."""
        return len(self.vector)
