"""Prompt templates for grounded answering."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class PromptTemplate(ABC):
    """Abstract base class for prompt templates."""

    @abstractmethod
    def format(self, **kwargs: Any) -> str:
        """Format the template with provided variables.

        Args:
            **kwargs: Template variables.

        Returns:
            Formatted prompt string.
        """
        ...


class GroundedPromptTemplate(PromptTemplate):
    """Single-message prompt restricting the model to retrieved context.

    The wording is fixed; downstream consumers depend on it verbatim.
    """

    TEMPLATE = (
        'You are an assistant. Use only the following context. If answer unknown, say "I don\'t know".\n'
        "Context:\n"
        "---\n"
        "{context}"
        "---\n"
        "Question: {question}\n"
        "Provide concise answer and cite source ids.\n"
    )

    def format(self, **kwargs: Any) -> str:
        """Format the template.

        Args:
            **kwargs: Must include 'context' and 'question'.

        Returns:
            Formatted prompt.
        """
        return self.TEMPLATE.format(**kwargs)

    def format_context(self, chunks: Sequence[str]) -> str:
        """One line per chunk, in the given order."""
        return "".join(f"{chunk}\n" for chunk in chunks)

    def build(self, question: str, chunks: Sequence[str]) -> str:
        """Build the prompt from a question and ordered chunk texts."""
        return self.format(context=self.format_context(chunks), question=question)
