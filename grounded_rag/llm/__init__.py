"""LLM client module."""

from grounded_rag.llm.client import LLMClient, OpenAICompatibleClient
from grounded_rag.llm.models import GenerationResult, Message, Role, Usage
from grounded_rag.llm.prompts import GroundedPromptTemplate, PromptTemplate

__all__ = [
    "GenerationResult",
    "GroundedPromptTemplate",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "PromptTemplate",
    "Role",
    "Usage",
]
