"""File management for recorded audio."""

import logging
import random
import string
from pathlib import Path
from datetime import datetime

logger = logging.getLogger(__name__)


class FileManager:
    """Manages where recordings are written and removes the ones we no longer need."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.recordings_dir = self.data_dir / "recordings"

        self.recordings_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def create_recording_path(self, extension: str = ".wav") -> str:
        """Build a unique path for a new recording.

        Returns:
            Path like recordings/recording_<unix time>_<suffix>.wav
        """
        timestamp = int(datetime.now().timestamp())
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=8))
        path = self.recordings_dir / f"recording_{timestamp}_{random_suffix}{extension}"
        logger.debug(f"Allocated recording path: {path}")
        return str(path)

    def file_size(self, path: str) -> int:
        """Size of a recording in bytes, 0 if it does not exist."""
        file_path = Path(path)
        if not file_path.is_file():
            return 0
        return file_path.stat().st_size

    def discard(self, path: str) -> None:
        """Remove a recording if present; missing files are ignored."""
        file_path = Path(path)
        if file_path.is_file():
            file_path.unlink()
            logger.debug(f"Discarded recording: {path}")

    def cleanup_old_recordings(self, max_age_days: float = 7) -> int:
        """Remove recordings older than `max_age_days`.

        Returns:
            Number of recordings removed
        """
        cutoff_time = datetime.now().timestamp() - (max_age_days * 24 * 60 * 60)
        cleaned_count = 0
        for file_path in self.recordings_dir.iterdir():
            if file_path.is_file() and file_path.stat().st_mtime < cutoff_time:
                file_path.unlink()
                cleaned_count += 1
        logger.info(f"Cleaned up {cleaned_count} old recordings")
        return cleaned_count
