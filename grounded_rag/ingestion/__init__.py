"""Knowledge ingestion module."""

from grounded_rag.ingestion.chunker import chunk_text
from grounded_rag.ingestion.loader import load_knowledge
from grounded_rag.ingestion.models import IngestionReport, KnowledgeItem
from grounded_rag.ingestion.service import ingest_file, ingest_knowledge

__all__ = [
    "IngestionReport",
    "KnowledgeItem",
    "chunk_text",
    "ingest_file",
    "ingest_knowledge",
    "load_knowledge",
]
