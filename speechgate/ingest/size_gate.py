"""Ingest-time payload size check, run before any transcription cost."""

import logging
from typing import Optional

from ..errors import AudioTooLargeError, AudioTooSmallError

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_FILE_SIZE_BYTES = 5000
DEFAULT_MAXIMUM_FILE_SIZE_BYTES = 10 * 1024 * 1024


def check_payload_size(size_bytes: int,
                       minimum_file_size_bytes: int = DEFAULT_MINIMUM_FILE_SIZE_BYTES,
                       maximum_file_size_bytes: Optional[int] = DEFAULT_MAXIMUM_FILE_SIZE_BYTES) -> None:
    """Reject payloads outside the accepted size range.

    The client runs its own gate, but this check never relies on it.

    Raises:
        AudioTooSmallError: If the payload is below the minimum
        AudioTooLargeError: If a maximum is set and the payload exceeds it
    """
    if size_bytes < minimum_file_size_bytes:
        logger.warning(f"Rejecting upload: {size_bytes} bytes < {minimum_file_size_bytes}")
        raise AudioTooSmallError(size_bytes, minimum_file_size_bytes)
    if maximum_file_size_bytes is not None and size_bytes > maximum_file_size_bytes:
        logger.warning(f"Rejecting upload: {size_bytes} bytes > {maximum_file_size_bytes}")
        raise AudioTooLargeError(size_bytes, maximum_file_size_bytes)
