"""Data models for the SpeechGate application."""

from .recording import RecordingSession, RecordingState
from .validation import QualityThresholds, RejectionReason, ValidationOutcome
from .transcription import StructuredTranscription, TranscriptionFallbackResult, UNKNOWN_LANGUAGE
from .events import StateChangeEvent
from .scoring import (
    ScoreLevel,
    WordAlignment,
    WordAnalysisDetails,
    LanguageInfo,
    ValidationResult,
    ValidationFeedback,
    ProgressionInfo,
    ValidationDetails,
    SpeechValidationResponse,
    StepAccess,
)

__all__ = [
    "RecordingSession",
    "RecordingState",
    "QualityThresholds",
    "RejectionReason",
    "ValidationOutcome",
    "StructuredTranscription",
    "TranscriptionFallbackResult",
    "UNKNOWN_LANGUAGE",
    "StateChangeEvent",
    # Wire response models
    "ScoreLevel",
    "WordAlignment",
    "WordAnalysisDetails",
    "LanguageInfo",
    "ValidationResult",
    "ValidationFeedback",
    "ProgressionInfo",
    "ValidationDetails",
    "SpeechValidationResponse",
    "StepAccess",
]
