"""Ingest side: size gate, validation service and HTTP endpoint."""

from .service import IngestService
from .size_gate import (
    DEFAULT_MAXIMUM_FILE_SIZE_BYTES,
    DEFAULT_MINIMUM_FILE_SIZE_BYTES,
    check_payload_size,
)

__all__ = [
    "IngestService",
    "check_payload_size",
    "DEFAULT_MINIMUM_FILE_SIZE_BYTES",
    "DEFAULT_MAXIMUM_FILE_SIZE_BYTES",
]
