"""Speech validation response models (matches the wire structure the client decodes)."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ScoreLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    NEEDS_IMPROVEMENT = "needs_improvement"
    POOR = "poor"

    @classmethod
    def parse(cls, value: str) -> "ScoreLevel":
        """Parse a score level leniently; `fair` is a legacy alias, unknown maps to acceptable."""
        value = str(value or "").lower()
        if value == "fair":
            return cls.NEEDS_IMPROVEMENT
        try:
            return cls(value)
        except ValueError:
            return cls.ACCEPTABLE

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class WordAlignment(WireModel):
    type: str  # "match", "substitution", "missing", "extra"
    expected: str
    spoken: Optional[str] = None
    position: int


class WordAnalysisDetails(WireModel):
    accuracy: float
    total_expected: int
    total_spoken: int
    match_count: int
    matches: List[str]
    missing: List[str]
    extra: List[str]
    incorrect: List[str]
    alignment: List[WordAlignment]


class LanguageInfo(WireModel):
    expected: str
    detected: Optional[str] = None
    match: bool
    confidence: Optional[float] = None


class ValidationResult(WireModel):
    id: Optional[str] = None
    step_index: int
    attempt_number: int
    transcription: str
    expected_text: str
    score: float
    score_percentage: int
    accuracy: float
    passed: bool
    score_level: ScoreLevel
    language_mismatch: bool

    @field_validator("score_level", mode="before")
    @classmethod
    def _lenient_score_level(cls, value):
        return value if isinstance(value, ScoreLevel) else ScoreLevel.parse(value)


class ValidationFeedback(WireModel):
    overall: str
    level: ScoreLevel
    suggestions: List[str]
    encouragement: Optional[str] = None
    details: Optional[List[str]] = None

    @field_validator("level", mode="before")
    @classmethod
    def _lenient_level(cls, value):
        return value if isinstance(value, ScoreLevel) else ScoreLevel.parse(value)


class ProgressionInfo(WireModel):
    can_proceed: bool
    reason: str
    message: str
    suggestions: Optional[List[str]] = None


class ValidationDetails(WireModel):
    word_analysis: Optional[WordAnalysisDetails] = None
    processing_time: int  # milliseconds
    language_info: LanguageInfo


class SpeechValidationResponse(WireModel):
    success: bool
    error: Optional[str] = None
    validation: ValidationResult
    feedback: ValidationFeedback
    progression: ProgressionInfo
    details: ValidationDetails


class StepAccess(WireModel):
    """Whether a lesson step may be attempted yet."""
    accessible: bool
    reason: Optional[str] = None
