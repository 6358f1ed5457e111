"""Quality gates applied to recordings."""

from .capture_gate import validate_capture, validate_session

__all__ = [
    "validate_capture",
    "validate_session",
]
