"""Transcription-related data models."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, StrictBool

UNKNOWN_LANGUAGE = "unknown"


class StructuredTranscription(BaseModel):
    """Schema a transcription backend is expected to return on its primary path."""
    model_config = ConfigDict(extra="ignore")

    transcript: str
    confidence: float = Field(ge=0.0, le=1.0)
    detected_language: str = Field(min_length=1)
    # Only a real boolean counts; "yes" or 1 must not read as a match.
    language_match: StrictBool


@dataclass
class TranscriptionFallbackResult:
    """Resolved transcription signal handed to scoring.

    Produced on both paths; `used_fallback` tells which one. On the fallback
    path `detected_language` is always the UNKNOWN_LANGUAGE sentinel and
    `language_match` is always False.
    """
    transcript: str
    detected_language: str
    confidence: float
    language_match: bool
    no_speech_detected: bool
    used_fallback: bool = False
