"""Ask pipeline module."""

from grounded_rag.rag.models import AskResult, SynthesisResult
from grounded_rag.rag.pipeline import AskPipeline
from grounded_rag.rag.synthesizer import AnswerSynthesizer, extractive_answer

__all__ = [
    "AnswerSynthesizer",
    "AskPipeline",
    "AskResult",
    "SynthesisResult",
    "extractive_answer",
]
