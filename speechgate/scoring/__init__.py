"""Pronunciation scoring."""

from .scorer import SpeechScorer, analyze_words, normalize_words

__all__ = [
    "SpeechScorer",
    "analyze_words",
    "normalize_words",
]
