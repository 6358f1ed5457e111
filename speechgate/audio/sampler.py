"""Amplitude sampling for the recording session."""

import logging
from typing import Optional

from ..models.recording import RecordingSession

logger = logging.getLogger(__name__)

# Device metering range: -160 dB is silence, 0 dB is full scale.
MIN_POWER_DB = -160.0
MAX_POWER_DB = 0.0


def normalize_power(power_db: Optional[float],
                    min_db: float = MIN_POWER_DB,
                    max_db: float = MAX_POWER_DB) -> float:
    """Map a decibel power reading linearly onto 0.0-1.0.

    Args:
        power_db: Instantaneous power in dB, or None when no source is available
        min_db: Lowest representable level (maps to 0.0)
        max_db: Highest representable level (maps to 1.0)

    Returns:
        Normalized amplitude, clamped to 0.0-1.0
    """
    if power_db is None or power_db != power_db:  # None or NaN
        return 0.0
    normalized = (power_db - min_db) / (max_db - min_db)
    return max(0.0, min(1.0, normalized))


class AmplitudeSampler:
    """Reads instantaneous power on each level tick and feeds the session."""

    def __init__(self, min_db: float = MIN_POWER_DB, max_db: float = MAX_POWER_DB):
        if max_db <= min_db:
            raise ValueError("max_db must be greater than min_db")
        self.min_db = min_db
        self.max_db = max_db
        self.samples_taken = 0

    def sample(self, session: RecordingSession, power_db: Optional[float]) -> float:
        """Normalize a power reading and record it on the session.

        A missing audio source yields a zero sample; sampling never fails.
        """
        value = normalize_power(power_db, self.min_db, self.max_db)
        session.record_sample(value)
        self.samples_taken += 1
        return value
