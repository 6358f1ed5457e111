"""Client for the speech validation endpoint."""

from .uploader import SpeechValidationClient

__all__ = ["SpeechValidationClient"]
