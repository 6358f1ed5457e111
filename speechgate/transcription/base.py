"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Union
import logging

logger = logging.getLogger(__name__)

RawTranscriptionPayload = Union[Dict[str, Any], str, bytes, None]


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends.

    Backends return their raw response payload; interpreting it (and deciding
    how far to trust it) is the job of the fallback policy.
    """

    service_name = "unknown"

    @abstractmethod
    def transcribe(self, audio: bytes, language_code: str) -> RawTranscriptionPayload:
        """Transcribe a complete recording.

        Args:
            audio: Audio file bytes as uploaded
            language_code: Expected lesson language (e.g. 'es', 'fr-FR')

        Returns:
            Structured payload (transcript, confidence, detected_language,
            language_match) when the backend can produce one, otherwise
            whatever raw response it received

        Raises:
            TranscriptionUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
