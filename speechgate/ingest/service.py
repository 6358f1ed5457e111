"""Ingest-side validation: size gate, transcription, fallback policy, scoring."""

import logging
import threading
import time
import uuid
from collections import OrderedDict, deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Tuple

from .size_gate import (
    DEFAULT_MAXIMUM_FILE_SIZE_BYTES,
    DEFAULT_MINIMUM_FILE_SIZE_BYTES,
    check_payload_size,
)
from ..models.scoring import SpeechValidationResponse, StepAccess
from ..scoring.scorer import SpeechScorer
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.fallback import TranscriptionFallbackPolicy

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20
DEFAULT_MAX_TRACKED_STEPS = 10000


@dataclass
class StepRecord:
    """Attempts made on one lesson step."""
    attempts: int = 0
    passed: bool = False
    history: Deque[SpeechValidationResponse] = field(default_factory=deque)


class IngestService:
    """Validates one uploaded recording end to end."""

    def __init__(self,
                 backend: AbstractTranscriptionBackend,
                 policy: Optional[TranscriptionFallbackPolicy] = None,
                 scorer: Optional[SpeechScorer] = None,
                 minimum_file_size_bytes: int = DEFAULT_MINIMUM_FILE_SIZE_BYTES,
                 maximum_file_size_bytes: Optional[int] = DEFAULT_MAXIMUM_FILE_SIZE_BYTES,
                 history_limit: int = DEFAULT_HISTORY_LIMIT,
                 max_tracked_steps: int = DEFAULT_MAX_TRACKED_STEPS):
        """Initialize ingest service.

        Args:
            backend: Speech-to-text backend
            policy: Fallback policy applied to every backend payload
            scorer: Scoring consumer
            minimum_file_size_bytes: Smallest payload accepted for transcription
            maximum_file_size_bytes: Largest payload accepted (None for no limit)
            history_limit: Responses kept per lesson step, newest win
            max_tracked_steps: Lesson steps tracked before the least recently
                               used one is forgotten
        """
        if history_limit <= 0 or max_tracked_steps <= 0:
            raise ValueError("history_limit and max_tracked_steps must be positive")
        self.backend = backend
        self.policy = policy or TranscriptionFallbackPolicy()
        self.scorer = scorer or SpeechScorer()
        if self.policy.confidence_ceiling >= self.scorer.pass_threshold:
            raise ValueError("Fallback confidence ceiling must stay below the scoring pass threshold")
        self.minimum_file_size_bytes = minimum_file_size_bytes
        self.maximum_file_size_bytes = maximum_file_size_bytes

        self.history_limit = history_limit
        self.max_tracked_steps = max_tracked_steps

        self._steps: "OrderedDict[Tuple[str, int], StepRecord]" = OrderedDict()
        self._steps_lock = threading.Lock()

    def validate_upload(self,
                        audio: bytes,
                        lesson_id: str,
                        step_index: int,
                        expected_text: str,
                        language_code: str) -> SpeechValidationResponse:
        """Validate an uploaded recording against the expected phrase.

        Raises:
            ValueError: If expected text or language is missing
            AudioTooSmallError: Before transcription, if the payload is too small
            AudioTooLargeError: Before transcription, if the payload is too large
            TranscriptionUnavailableError: If the backend cannot be reached
        """
        if not expected_text or not expected_text.strip():
            raise ValueError("expectedText is required")
        if not language_code or not language_code.strip():
            raise ValueError("languageCode is required")

        check_payload_size(len(audio), self.minimum_file_size_bytes, self.maximum_file_size_bytes)

        logger.info(f"Validating speech for lesson {lesson_id} step {step_index} "
                    f"({len(audio)} bytes, language {language_code})")
        start_time = time.time()
        payload = self.backend.transcribe(audio, language_code)
        resolved = self.policy.resolve(payload)
        if resolved.used_fallback:
            logger.warning(f"Transcription fallback used for lesson {lesson_id} step {step_index}")

        attempt_number = self._next_attempt(lesson_id, step_index)
        processing_time_ms = int((time.time() - start_time) * 1000)
        response = self.scorer.score(
            resolved,
            expected_text=expected_text,
            language_code=language_code,
            step_index=step_index,
            attempt_number=attempt_number,
            attempt_id=uuid.uuid4().hex,
            processing_time_ms=processing_time_ms,
        )
        logger.info(f"Speech validation completed. Passed: {response.validation.passed}, "
                    f"Score: {response.validation.score:.2f}")
        self._record(lesson_id, step_index, response)
        return response

    def attempt_count(self, lesson_id: str, step_index: int) -> int:
        with self._steps_lock:
            record = self._steps.get((lesson_id, step_index))
            return record.attempts if record else 0

    def validation_history(self, lesson_id: str, step_index: int) -> List[SpeechValidationResponse]:
        """Responses for a lesson step, oldest first (at most `history_limit`)."""
        with self._steps_lock:
            record = self._steps.get((lesson_id, step_index))
            return list(record.history) if record else []

    def check_step_access(self, lesson_id: str, step_index: int) -> StepAccess:
        """A step is open once the step before it has been passed; step 0 is always open."""
        if step_index < 0:
            raise ValueError("step index must not be negative")
        if step_index == 0:
            return StepAccess(accessible=True, reason="first_step")
        with self._steps_lock:
            previous = self._steps.get((lesson_id, step_index - 1))
            if previous is not None and previous.passed:
                return StepAccess(accessible=True, reason="previous_step_passed")
        return StepAccess(accessible=False, reason="previous_step_not_passed")

    def _step(self, lesson_id: str, step_index: int) -> StepRecord:
        # Caller holds _steps_lock.
        key = (lesson_id, step_index)
        record = self._steps.get(key)
        if record is None:
            record = StepRecord(history=deque(maxlen=self.history_limit))
            self._steps[key] = record
            while len(self._steps) > self.max_tracked_steps:
                forgotten, _ = self._steps.popitem(last=False)
                logger.debug(f"Forgetting attempts for lesson {forgotten[0]} step {forgotten[1]}")
        else:
            self._steps.move_to_end(key)
        return record

    def _next_attempt(self, lesson_id: str, step_index: int) -> int:
        with self._steps_lock:
            record = self._step(lesson_id, step_index)
            record.attempts += 1
            return record.attempts

    def _record(self, lesson_id: str, step_index: int, response: SpeechValidationResponse) -> None:
        with self._steps_lock:
            record = self._step(lesson_id, step_index)
            record.history.append(response)
            record.passed = record.passed or response.validation.passed
