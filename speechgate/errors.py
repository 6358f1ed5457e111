"""Error taxonomy and user-facing messages."""

from enum import Enum
from typing import Optional

from .models.validation import RejectionReason


class CaptureFaultReason(str, Enum):
    """Capture-layer faults; each one is terminal for the session."""
    PERMISSION_DENIED = "permission_denied"
    DEVICE_UNAVAILABLE = "device_unavailable"
    ENCODE_FAILED = "encode_failed"
    FILE_NOT_FOUND = "file_not_found"


INVALID_STATE = "invalid_state"
NETWORK_ERROR = "network_error"
AUDIO_TOO_SMALL = "audio_too_small"
AUDIO_TOO_LARGE = "audio_too_large"
NO_SPEECH_DETECTED = "no_speech_detected"
TRANSCRIPTION_UNAVAILABLE = "transcription_unavailable"
UPLOAD_FAILED = "upload_failed"

USER_MESSAGES = {
    RejectionReason.TOO_SHORT.value: "That was too short. Hold the button and say the whole phrase.",
    RejectionReason.TOO_QUIET.value: "We could barely hear you. Speak a little louder and try again.",
    RejectionReason.FILE_TOO_SMALL.value: "The recording didn't capture enough audio. Please try again.",
    CaptureFaultReason.PERMISSION_DENIED.value: "Microphone permission denied. Please enable it in Settings.",
    CaptureFaultReason.DEVICE_UNAVAILABLE.value: "No microphone is available right now.",
    CaptureFaultReason.ENCODE_FAILED.value: "The recording could not be saved. Please record again.",
    CaptureFaultReason.FILE_NOT_FOUND.value: "Recording file not found.",
    INVALID_STATE: "The recorder is busy. Finish or cancel the current recording first.",
    NETWORK_ERROR: "Connection problem while sending your recording. Please retry.",
    AUDIO_TOO_SMALL: "The uploaded audio was too small to evaluate. Please record again.",
    AUDIO_TOO_LARGE: "The recording is too long to evaluate. Please keep it shorter.",
    NO_SPEECH_DETECTED: "We didn't hear any speech. Make sure you speak into the microphone.",
    TRANSCRIPTION_UNAVAILABLE: "Speech checking is temporarily unavailable. Please retry shortly.",
    UPLOAD_FAILED: "Something went wrong while checking your recording.",
}


def user_message(code: str) -> str:
    """Return the user-facing message for an error or rejection code.

    Raises:
        KeyError: If the code is not part of the taxonomy
    """
    if isinstance(code, Enum):
        code = code.value
    return USER_MESSAGES[code]


class SpeechGateError(Exception):
    """Base class for SpeechGate errors."""
    code = UPLOAD_FAILED
    retryable = False

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or USER_MESSAGES[self.code])

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.code]


class CaptureFault(SpeechGateError):
    """Capture-layer fault (permission, device, encoding)."""

    def __init__(self, reason: CaptureFaultReason, detail: Optional[str] = None):
        self.reason = CaptureFaultReason(reason)
        self.code = self.reason.value
        self.detail = detail
        message = USER_MESSAGES[self.code]
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class InvalidStateError(SpeechGateError):
    code = INVALID_STATE


class NetworkError(SpeechGateError):
    """Transport failure or timeout during upload; always retryable."""
    code = NETWORK_ERROR
    retryable = True


class AudioTooSmallError(SpeechGateError):
    code = AUDIO_TOO_SMALL

    def __init__(self, size_bytes: int, minimum_bytes: int):
        self.size_bytes = size_bytes
        self.minimum_bytes = minimum_bytes
        super().__init__(f"Audio payload too small: {size_bytes} bytes (minimum {minimum_bytes})")


class AudioTooLargeError(SpeechGateError):
    code = AUDIO_TOO_LARGE

    def __init__(self, size_bytes: int, maximum_bytes: int):
        self.size_bytes = size_bytes
        self.maximum_bytes = maximum_bytes
        super().__init__(f"Audio payload too large: {size_bytes} bytes (maximum {maximum_bytes})")


class TranscriptionUnavailableError(SpeechGateError):
    """The speech-to-text backend could not be reached; never scored."""
    code = TRANSCRIPTION_UNAVAILABLE
    retryable = True


class UploadFailedError(SpeechGateError):
    code = UPLOAD_FAILED

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(f"Upload failed with status {status}: {message or 'no details'}")
