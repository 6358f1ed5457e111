"""Audio capture, amplitude sampling and session event publishing.

The PyAudio-backed device lives in `speechgate.audio.capture` and is imported
explicitly so the rest of the package works without audio hardware.
"""

from .device import CaptureDevice, PermissionProvider, AlwaysGrantedPermission
from .publisher import SessionEventPublisher
from .sampler import AmplitudeSampler, normalize_power
from .ticks import TickSource, ThreadingTickSource

__all__ = [
    'CaptureDevice',
    'PermissionProvider',
    'AlwaysGrantedPermission',
    'SessionEventPublisher',
    'AmplitudeSampler',
    'normalize_power',
    'TickSource',
    'ThreadingTickSource',
]
