"""Knowledge ingestion data models."""

from pydantic import BaseModel, ConfigDict, Field


class KnowledgeItem(BaseModel):
    """One entry of a knowledge file.

    Attributes:
        id: Stable document identifier.
        text: Full document text.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Document identifier")
    text: str = Field(description="Document text")


class IngestionReport(BaseModel):
    """Summary of one ingestion run."""

    documents: int = Field(default=0, ge=0, description="Documents read")
    chunks: int = Field(default=0, ge=0, description="Chunks indexed")
