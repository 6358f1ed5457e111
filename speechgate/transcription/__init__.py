"""Transcription backends and the fallback policy.

`GoogleSpeechBackend` is imported from `speechgate.transcription.google_backend`.
"""

from .base import AbstractTranscriptionBackend, RawTranscriptionPayload
from .fallback import TranscriptionFallbackPolicy

__all__ = [
    "AbstractTranscriptionBackend",
    "RawTranscriptionPayload",
    "TranscriptionFallbackPolicy",
]
