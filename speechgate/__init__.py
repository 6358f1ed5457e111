"""SpeechGate - audio quality gates and scoring for spoken lesson steps."""

__version__ = "0.1.0"
