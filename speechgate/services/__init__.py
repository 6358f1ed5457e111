"""Services layer for SpeechGate application logic."""

from .recording_session import RecordingSessionManager

__all__ = [
    "RecordingSessionManager",
]
