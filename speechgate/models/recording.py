"""Recording session data models."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, Optional


class RecordingState(Enum):
    """Lifecycle states of a recording session."""
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


DEFAULT_WINDOW_CAPACITY = 100


@dataclass
class RecordingSession:
    """One in-progress or completed capture attempt."""
    session_id: str
    output_location: Optional[str] = None
    state: RecordingState = RecordingState.IDLE
    start_time: Optional[datetime] = None
    elapsed_duration: float = 0.0
    peak_amplitude: float = 0.0
    window_capacity: int = DEFAULT_WINDOW_CAPACITY
    amplitude_sample_window: Deque[float] = field(init=False)
    last_error: Optional[Exception] = None

    def __post_init__(self):
        if self.window_capacity <= 0:
            raise ValueError("window_capacity must be positive")
        self.amplitude_sample_window = deque(maxlen=self.window_capacity)

    def record_sample(self, value: float) -> None:
        """Feed a normalized amplitude sample into the session.

        The window is a bounded FIFO: once at capacity the oldest sample is
        evicted. The peak only ever grows until the accumulators are reset.
        """
        value = max(0.0, min(1.0, value))
        self.amplitude_sample_window.append(value)
        if value > self.peak_amplitude:
            self.peak_amplitude = value

    @property
    def average_amplitude(self) -> float:
        if not self.amplitude_sample_window:
            return 0.0
        return sum(self.amplitude_sample_window) / len(self.amplitude_sample_window)

    def reset_accumulators(self) -> None:
        self.peak_amplitude = 0.0
        self.amplitude_sample_window.clear()
        self.elapsed_duration = 0.0
