"""Pronunciation scoring against the expected text."""

import logging
import unicodedata
from difflib import SequenceMatcher
from typing import List, Optional

from ..errors import NO_SPEECH_DETECTED, user_message
from ..models.scoring import (
    LanguageInfo,
    ProgressionInfo,
    ScoreLevel,
    SpeechValidationResponse,
    ValidationDetails,
    ValidationFeedback,
    ValidationResult,
    WordAlignment,
    WordAnalysisDetails,
)
from ..models.transcription import TranscriptionFallbackResult

logger = logging.getLogger(__name__)

OVERALL_MESSAGES = {
    ScoreLevel.EXCELLENT: "Excellent pronunciation!",
    ScoreLevel.GOOD: "Good job, that was clear.",
    ScoreLevel.ACCEPTABLE: "Nice, you got the phrase across.",
    ScoreLevel.NEEDS_IMPROVEMENT: "Almost there, a few words need work.",
    ScoreLevel.POOR: "Let's try that again.",
}


def normalize_words(text: str) -> List[str]:
    """Lowercase, drop punctuation and split into words (accents are kept)."""
    text = unicodedata.normalize("NFC", text or "").lower()
    cleaned = "".join(" " if unicodedata.category(ch).startswith("P") else ch for ch in text)
    return cleaned.split()


def analyze_words(expected_text: str, spoken_text: str) -> WordAnalysisDetails:
    """Align spoken words against the expected words.

    Returns:
        Word analysis with matches, substitutions, missing and extra words
    """
    expected = normalize_words(expected_text)
    spoken = normalize_words(spoken_text)

    matches: List[str] = []
    missing: List[str] = []
    extra: List[str] = []
    incorrect: List[str] = []
    alignment: List[WordAlignment] = []

    matcher = SequenceMatcher(None, expected, spoken, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for offset, word in enumerate(expected[i1:i2]):
                matches.append(word)
                alignment.append(WordAlignment(type="match", expected=word, spoken=word, position=i1 + offset))
        elif tag == "replace":
            expected_part = expected[i1:i2]
            spoken_part = spoken[j1:j2]
            paired = min(len(expected_part), len(spoken_part))
            for offset in range(paired):
                incorrect.append(expected_part[offset])
                alignment.append(WordAlignment(type="substitution", expected=expected_part[offset],
                                               spoken=spoken_part[offset], position=i1 + offset))
            for offset in range(paired, len(expected_part)):
                missing.append(expected_part[offset])
                alignment.append(WordAlignment(type="missing", expected=expected_part[offset],
                                               position=i1 + offset))
            for word in spoken_part[paired:]:
                extra.append(word)
                alignment.append(WordAlignment(type="extra", expected="", spoken=word, position=i2))
        elif tag == "delete":
            for offset, word in enumerate(expected[i1:i2]):
                missing.append(word)
                alignment.append(WordAlignment(type="missing", expected=word, position=i1 + offset))
        elif tag == "insert":
            for word in spoken[j1:j2]:
                extra.append(word)
                alignment.append(WordAlignment(type="extra", expected="", spoken=word, position=i1))

    accuracy = len(matches) / len(expected) if expected else 0.0
    return WordAnalysisDetails(
        accuracy=round(accuracy, 4),
        total_expected=len(expected),
        total_spoken=len(spoken),
        match_count=len(matches),
        matches=matches,
        missing=missing,
        extra=extra,
        incorrect=incorrect,
        alignment=alignment,
    )


class SpeechScorer:
    """Scores a resolved transcription and builds the validation response.

    The transcription signal caps the score (see `ceiling`); no detected
    speech short-circuits to a zero score.
    """

    def __init__(self,
                 pass_threshold: float = 0.70,
                 excellent: float = 0.95,
                 good: float = 0.85,
                 acceptable: float = 0.75,
                 language_mismatch_ceiling: float = 0.3,
                 word_weight: float = 0.6,
                 low_confidence: float = 0.5):
        if not 0.0 < pass_threshold <= acceptable <= good <= excellent <= 1.0:
            raise ValueError("Score thresholds must satisfy 0 < pass <= acceptable <= good <= excellent <= 1")
        if not 0.0 < language_mismatch_ceiling < pass_threshold:
            raise ValueError("language_mismatch_ceiling must be above 0 and below pass_threshold")
        if not 0.0 <= word_weight <= 1.0:
            raise ValueError("word_weight must be within 0.0-1.0")
        if not 0.0 <= low_confidence <= 1.0:
            raise ValueError("low_confidence must be within 0.0-1.0")
        self.pass_threshold = pass_threshold
        self.excellent = excellent
        self.good = good
        self.acceptable = acceptable
        self.language_mismatch_ceiling = language_mismatch_ceiling
        self.word_weight = word_weight
        self.low_confidence = low_confidence

    def rating(self, score: float) -> ScoreLevel:
        if score >= self.excellent:
            return ScoreLevel.EXCELLENT
        if score >= self.good:
            return ScoreLevel.GOOD
        if score >= self.acceptable:
            return ScoreLevel.ACCEPTABLE
        if score >= self.pass_threshold:
            return ScoreLevel.NEEDS_IMPROVEMENT
        return ScoreLevel.POOR

    def passed(self, score: float) -> bool:
        return score >= self.pass_threshold

    def ceiling(self, transcription: TranscriptionFallbackResult) -> float:
        """Highest score the transcription signal allows.

        A salvaged transcript is capped at its attenuated confidence, which
        stays below the pass threshold. A language mismatch caps at the
        mismatch ceiling. A structured result recognized with confidence
        under `low_confidence` can at most just pass.
        """
        ceiling = 1.0
        if transcription.used_fallback:
            ceiling = min(ceiling, transcription.confidence)
        if not transcription.language_match:
            ceiling = min(ceiling, self.language_mismatch_ceiling)
        if transcription.confidence < self.low_confidence:
            ceiling = min(ceiling, self.pass_threshold)
        return ceiling

    def score(self,
              transcription: TranscriptionFallbackResult,
              expected_text: str,
              language_code: str,
              step_index: int = 0,
              attempt_number: int = 1,
              attempt_id: Optional[str] = None,
              processing_time_ms: int = 0) -> SpeechValidationResponse:
        """Score one attempt.

        Args:
            transcription: Resolved transcription signal
            expected_text: Phrase the learner was asked to say
            language_code: Expected lesson language
            step_index: Lesson step being validated
            attempt_number: 1-based attempt counter for the step
            attempt_id: Identifier of this attempt
            processing_time_ms: Time spent transcribing and scoring

        Returns:
            Complete validation response
        """
        if transcription.no_speech_detected:
            logger.info(f"No speech detected for step {step_index}; score 0")
            return self._no_speech_response(expected_text, language_code, step_index,
                                            attempt_number, attempt_id, processing_time_ms)

        analysis = analyze_words(expected_text, transcription.transcript)
        similarity = SequenceMatcher(
            None,
            " ".join(normalize_words(expected_text)),
            " ".join(normalize_words(transcription.transcript)),
            autojunk=False,
        ).ratio()
        raw_score = self.word_weight * analysis.accuracy + (1.0 - self.word_weight) * similarity

        language_mismatch = not transcription.language_match
        score = min(raw_score, self.ceiling(transcription))
        score = round(max(0.0, min(1.0, score)), 4)
        level = self.rating(score)
        passed = self.passed(score)
        logger.info(f"Scored step {step_index}: raw={raw_score:.3f} final={score:.3f} "
                    f"level={level.value} language_match={transcription.language_match} "
                    f"confidence={transcription.confidence:.2f} fallback={transcription.used_fallback}")

        validation = ValidationResult(
            id=attempt_id,
            step_index=step_index,
            attempt_number=attempt_number,
            transcription=transcription.transcript,
            expected_text=expected_text,
            score=score,
            score_percentage=int(round(score * 100)),
            accuracy=analysis.accuracy,
            passed=passed,
            score_level=level,
            language_mismatch=language_mismatch,
        )
        return SpeechValidationResponse(
            success=True,
            validation=validation,
            feedback=self._feedback(level, passed, analysis, language_mismatch, language_code),
            progression=self._progression(passed, language_mismatch),
            details=ValidationDetails(
                word_analysis=analysis,
                processing_time=processing_time_ms,
                language_info=LanguageInfo(
                    expected=language_code,
                    detected=transcription.detected_language,
                    match=transcription.language_match,
                    confidence=round(transcription.confidence, 4),
                ),
            ),
        )

    def _feedback(self, level: ScoreLevel, passed: bool, analysis: WordAnalysisDetails,
                  language_mismatch: bool, language_code: str) -> ValidationFeedback:
        suggestions = []
        details = None
        if language_mismatch:
            suggestions.append(f"Make sure you are speaking in the lesson language ({language_code}).")
            details = ["The recording did not match the expected language."]
        if analysis.missing:
            suggestions.append("Don't forget: " + ", ".join(analysis.missing[:5]))
        if analysis.incorrect:
            suggestions.append("Practice these words: " + ", ".join(analysis.incorrect[:5]))
        if analysis.extra:
            suggestions.append("Try not to add extra words.")
        if not suggestions and not passed:
            suggestions.append("Listen to the example again and repeat slowly.")

        encouragement = "Keep it up!" if passed else "You're making progress, try once more."
        return ValidationFeedback(
            overall=OVERALL_MESSAGES[level],
            level=level,
            suggestions=suggestions,
            encouragement=encouragement,
            details=details,
        )

    def _progression(self, passed: bool, language_mismatch: bool) -> ProgressionInfo:
        if passed:
            return ProgressionInfo(can_proceed=True, reason="passed",
                                   message="Great, you can continue to the next step.")
        reason = "language_mismatch" if language_mismatch else "score_below_threshold"
        return ProgressionInfo(
            can_proceed=False,
            reason=reason,
            message=f"Reach {int(round(self.pass_threshold * 100))}% to continue.",
            suggestions=["Try recording again."],
        )

    def _no_speech_response(self, expected_text: str, language_code: str, step_index: int,
                            attempt_number: int, attempt_id: Optional[str],
                            processing_time_ms: int) -> SpeechValidationResponse:
        message = user_message(NO_SPEECH_DETECTED)
        return SpeechValidationResponse(
            success=True,
            error=NO_SPEECH_DETECTED,
            validation=ValidationResult(
                id=attempt_id,
                step_index=step_index,
                attempt_number=attempt_number,
                transcription="",
                expected_text=expected_text,
                score=0.0,
                score_percentage=0,
                accuracy=0.0,
                passed=False,
                score_level=ScoreLevel.POOR,
                language_mismatch=False,
            ),
            feedback=ValidationFeedback(
                overall=message,
                level=ScoreLevel.POOR,
                suggestions=["Check that your microphone is working.", "Speak clearly and a bit louder."],
            ),
            progression=ProgressionInfo(
                can_proceed=False,
                reason=NO_SPEECH_DETECTED,
                message=message,
            ),
            details=ValidationDetails(
                processing_time=processing_time_ms,
                language_info=LanguageInfo(expected=language_code, detected=None, match=False),
            ),
        )
