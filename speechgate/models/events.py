"""Event models for pub/sub session lifecycle publishing."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .recording import RecordingState


@dataclass
class StateChangeEvent:
    """Recording session state transition."""
    session_id: Optional[str]
    old_state: RecordingState
    new_state: RecordingState
    timestamp: datetime = field(default_factory=datetime.now)
    detail: Optional[str] = None
