"""Capture-time quality gate models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class RejectionReason(str, Enum):
    """Closed set of reasons the capture-time gate can reject a recording."""
    TOO_SHORT = "too_short"
    TOO_QUIET = "too_quiet"
    FILE_TOO_SMALL = "file_too_small"


@dataclass(frozen=True)
class QualityThresholds:
    """Thresholds consumed by the capture-time validator.

    All four values are independently tunable. The average amplitude
    threshold is advisory only.
    """
    minimum_duration: float = 0.5
    minimum_file_size_bytes: int = 5000
    minimum_peak_amplitude: float = 0.03
    minimum_average_amplitude: float = 0.02

    def __post_init__(self):
        if self.minimum_duration < 0:
            raise ValueError("minimum_duration must be >= 0")
        if self.minimum_file_size_bytes < 0:
            raise ValueError("minimum_file_size_bytes must be >= 0")
        for name in ("minimum_peak_amplitude", "minimum_average_amplitude"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within 0.0-1.0, got {value}")


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of one stop attempt: accepted with a location, or rejected with a reason."""
    accepted: bool
    output_location: Optional[str] = None
    reason: Optional[RejectionReason] = None

    def __post_init__(self):
        if self.accepted and self.reason is not None:
            raise ValueError("An accepted outcome cannot carry a rejection reason")
        if not self.accepted and self.reason is None:
            raise ValueError("A rejected outcome needs a rejection reason")

    @classmethod
    def accept(cls, output_location: str) -> "ValidationOutcome":
        return cls(accepted=True, output_location=output_location)

    @classmethod
    def reject(cls, reason: RejectionReason) -> "ValidationOutcome":
        return cls(accepted=False, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        """Render the outcome in its external wire shape."""
        if self.accepted:
            return {"accepted": True, "outputLocation": self.output_location}
        return {"accepted": False, "reason": self.reason.value}
