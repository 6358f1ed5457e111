"""Fail-closed interpretation of transcription backend responses."""

import json
import logging
from typing import Any, Optional, Tuple

from pydantic import ValidationError

from .base import RawTranscriptionPayload
from ..models.transcription import (
    StructuredTranscription,
    TranscriptionFallbackResult,
    UNKNOWN_LANGUAGE,
)

logger = logging.getLogger(__name__)

TEXT_KEYS = ("transcript", "text")
CONFIDENCE_KEY = "confidence"


class TranscriptionFallbackPolicy:
    """Resolves a backend payload into the signal scoring consumes.

    When the payload parses into the structured schema, its confidence,
    detected language and language match pass through unmodified. When it
    does not, whatever text can be salvaged is reported with a forced
    language mismatch and attenuated confidence, so a degraded parse can
    never earn a passing score.
    """

    def __init__(self, confidence_factor: float = 0.5, confidence_ceiling: float = 0.4):
        """Initialize the policy.

        Args:
            confidence_factor: Multiplier applied to salvaged confidence (at most 0.5)
            confidence_ceiling: Hard cap on fallback confidence; keep it below the
                                scoring pass threshold
        """
        if not 0.0 <= confidence_factor <= 0.5:
            raise ValueError("confidence_factor must be within 0.0-0.5")
        if not 0.0 <= confidence_ceiling < 1.0:
            raise ValueError("confidence_ceiling must be within 0.0-1.0 (exclusive)")
        self.confidence_factor = confidence_factor
        self.confidence_ceiling = confidence_ceiling

    def resolve(self, payload: RawTranscriptionPayload) -> TranscriptionFallbackResult:
        """Resolve a raw payload through the primary parse, or the fallback path."""
        try:
            structured = self.parse_structured(payload)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Structured transcription parse failed, using fallback: {e}")
            return self.recover(payload)

        transcript = structured.transcript.strip()
        return TranscriptionFallbackResult(
            transcript=transcript,
            detected_language=structured.detected_language,
            confidence=structured.confidence,
            language_match=structured.language_match,
            no_speech_detected=not transcript,
        )

    @staticmethod
    def parse_structured(payload: RawTranscriptionPayload) -> StructuredTranscription:
        """Parse a payload into the structured schema.

        Raises:
            ValueError: If the payload is not JSON or fails schema validation
            TypeError: If the payload is not an object
        """
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        if isinstance(payload, str):
            payload = json.loads(payload)
        if not isinstance(payload, dict):
            raise TypeError(f"Expected a JSON object, got {type(payload).__name__}")
        return StructuredTranscription.model_validate(payload)

    def recover(self, payload: RawTranscriptionPayload) -> TranscriptionFallbackResult:
        """Build the pessimistic result for a payload that failed the primary parse."""
        text, salvaged_confidence = self._salvage(payload)
        text = (text or "").strip()
        if not text:
            logger.info("Fallback salvaged no text; reporting no speech")
            return TranscriptionFallbackResult(
                transcript="",
                detected_language=UNKNOWN_LANGUAGE,
                confidence=0.0,
                language_match=False,
                no_speech_detected=True,
                used_fallback=True,
            )

        confidence = min(salvaged_confidence * self.confidence_factor, self.confidence_ceiling)
        logger.info(f"Fallback salvaged {len(text)} chars; confidence {salvaged_confidence:.2f} "
                    f"attenuated to {confidence:.2f}")
        return TranscriptionFallbackResult(
            transcript=text,
            detected_language=UNKNOWN_LANGUAGE,
            confidence=confidence,
            language_match=False,
            no_speech_detected=False,
            used_fallback=True,
        )

    def _salvage(self, payload: RawTranscriptionPayload) -> Tuple[str, float]:
        if payload is None:
            return "", 0.0
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError:
                return payload, 0.0
            if isinstance(payload, str):
                return payload, 0.0
        text = _find_text(payload) or ""
        confidence = _find_confidence(payload)
        return text, _clamp(confidence if confidence is not None else 0.0)


def _find_text(node: Any) -> Optional[str]:
    """Depth-first search for the first non-blank transcript-like string."""
    if isinstance(node, dict):
        for key in TEXT_KEYS:
            value = node.get(key)
            if isinstance(value, str) and value.strip():
                return value
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = _find_text(child)
        if found:
            return found
    return None


def _find_confidence(node: Any) -> Optional[float]:
    if isinstance(node, dict):
        value = node.get(CONFIDENCE_KEY)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = _find_confidence(child)
        if found is not None:
            return found
    return None


def _clamp(value: float) -> float:
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))
