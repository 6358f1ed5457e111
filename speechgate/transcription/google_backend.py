"""Google Speech-to-Text transcription backend."""

import time
import logging
from typing import Any, Dict, List, Optional

from .base import AbstractTranscriptionBackend, RawTranscriptionPayload
from ..errors import TranscriptionUnavailableError

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


def languages_match(detected: str, expected: str) -> bool:
    """Compare primary language subtags, e.g. 'es-ES' matches 'es'."""
    if not detected or not expected:
        return False
    return detected.lower().split('-')[0] == expected.lower().split('-')[0]


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    service_name = "Google Speech-to-Text"

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 alternative_language_codes: Optional[List[str]] = None,
                 request_timeout: float = 30.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of uploaded LINEAR16 audio
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            alternative_language_codes: Extra languages the recognizer may detect,
                                        which is what makes a language mismatch observable
            request_timeout: Per-request deadline in seconds
        """
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.sample_rate = sample_rate
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.alternative_language_codes = alternative_language_codes or []
        self.request_timeout = request_timeout
        self.client = None
        self.project_id = None

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")
        return True

    def build_config(self, language_code: str) -> speech.RecognitionConfig:
        alternatives = [code for code in self.alternative_language_codes
                        if not languages_match(code, language_code)]
        return speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            language_code=language_code,
            alternative_language_codes=alternatives,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model="latest_short",
        )

    def transcribe(self, audio: bytes, language_code: str) -> RawTranscriptionPayload:
        """Transcribe a recording using Google Speech-to-Text."""
        if self.client is None:
            raise TranscriptionUnavailableError("Google Speech backend not initialized")

        start_time = time.time()
        logger.debug(f"Audio size: {len(audio)} bytes; Language: {language_code}; "
                     f"Enhanced model: {self.use_enhanced}")
        recognition_audio = speech.RecognitionAudio(content=audio)
        try:
            response = self.client.recognize(config=self.build_config(language_code),
                                             audio=recognition_audio,
                                             timeout=self.request_timeout)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded")
            raise TranscriptionUnavailableError(f"Google Speech recognize timeout: {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable")
            raise TranscriptionUnavailableError(f"Google Speech service unavailable: {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google STT API call error: {e}")
            raise TranscriptionUnavailableError(f"Google Speech API error: {e}") from e

        logger.debug(f"Recognize finished in {time.time() - start_time:.3f}s")
        return self.structure_response(response, language_code)

    def structure_response(self, response: speech.RecognizeResponse, expected_language: str) -> RawTranscriptionPayload:
        """Turn a recognize response into the structured payload.

        Falls back to the raw response dict when a structured field is missing.
        """
        if not response.results:
            logger.debug("--- NO SPEECH DETECTED ---")
            return {
                "transcript": "",
                "confidence": 0.0,
                "detected_language": expected_language,
                "language_match": False,
            }

        first = response.results[0]
        if not first.alternatives or not first.language_code:
            logger.warning("Recognize response missing structured fields; returning raw response")
            return self._raw_dict(response)

        transcript = " ".join(
            result.alternatives[0].transcript.strip()
            for result in response.results
            if result.alternatives
        ).strip()
        detected = first.language_code
        logger.debug(f"Transcript='{transcript}' (conf={first.alternatives[0].confidence}, "
                     f"language={detected})")
        return {
            "transcript": transcript,
            "confidence": first.alternatives[0].confidence,
            "detected_language": detected,
            "language_match": languages_match(detected, expected_language),
        }

    @staticmethod
    def _raw_dict(response: speech.RecognizeResponse) -> Dict[str, Any]:
        return type(response).to_dict(response)

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None
