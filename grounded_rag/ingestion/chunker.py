"""Sentence-aware text chunking."""

import re

SENTENCE_PATTERN = re.compile(r"(?<=[.!?])\s+")

HARD_LIMIT = 3000
TARGET_SIZE = 900


def split_sentences(text: str) -> list[str]:
    """Split text after sentence-ending punctuation."""
    return SENTENCE_PATTERN.split(text)


def chunk_text(
    text: str,
    hard_limit: int = HARD_LIMIT,
    target_size: int = TARGET_SIZE,
) -> list[str]:
    """Split text into chunks for indexing.

    Text up to ``hard_limit`` characters is kept whole. Longer text is split
    into sentences which are packed greedily, joined by single spaces, into
    chunks of roughly ``target_size`` characters. A single sentence longer
    than the target becomes its own chunk.

    Args:
        text: Text to split.
        hard_limit: Length at or below which no split happens.
        target_size: Target chunk length for long text.

    Returns:
        Non-empty list of chunks.
    """
    if len(text) <= hard_limit:
        return [text]

    chunks: list[str] = []
    current: list[str] = []
    current_length = 0

    for sentence in split_sentences(text):
        if current and current_length + len(sentence) + 1 > target_size:
            chunks.append(" ".join(current))
            current = []
            current_length = 0
        current.append(sentence)
        current_length += len(sentence) + (1 if current_length else 0)

    if current:
        chunks.append(" ".join(current))

    return chunks or [text]
