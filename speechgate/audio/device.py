"""Capture device and permission interfaces used by the recording session manager."""

from typing import Callable, Optional, Protocol

from ..errors import CaptureFaultReason

FaultHandler = Callable[[CaptureFaultReason, str], None]


class CaptureDevice(Protocol):
    """Exclusive handle on the audio input used by one session at a time."""

    def prepare(self, output_path: str) -> None:
        """Get ready to write a new recording to `output_path`."""
        ...

    def record(self) -> None:
        """Start or resume writing audio."""
        ...

    def pause(self) -> None:
        ...

    def stop(self) -> None:
        """Stop and finalize the file at the prepared path."""
        ...

    def discard(self) -> None:
        """Stop without keeping any captured bytes."""
        ...

    def current_time(self) -> float:
        """Seconds of audio recorded so far."""
        ...

    def average_power(self) -> Optional[float]:
        """Instantaneous power in dB (-160..0), or None when nothing is readable."""
        ...

    def set_fault_handler(self, handler: Optional[FaultHandler]) -> None:
        """Register a callback for faults raised asynchronously while recording."""
        ...


class PermissionProvider(Protocol):
    def request(self) -> bool:
        ...


class AlwaysGrantedPermission:
    """Permission provider for hosts without a microphone permission prompt."""

    def request(self) -> bool:
        return True
