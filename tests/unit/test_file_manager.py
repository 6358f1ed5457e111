"""Unit tests for FileManager class."""

import os
import re
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from speechgate.storage.file_manager import FileManager


@pytest.mark.unit
class TestFileManager:
    """Test cases for FileManager class."""

    def test_initialization(self, temp_data_dir):
        """Test file manager initialization."""
        fm = FileManager(temp_data_dir)

        assert fm.data_dir == Path(temp_data_dir)
        assert fm.recordings_dir == Path(temp_data_dir) / "recordings"
        assert fm.recordings_dir.exists()

    def test_initialization_default_path(self):
        """Test initialization with the default path."""
        with patch.object(Path, 'mkdir') as mock_mkdir:
            fm = FileManager()

            assert fm.data_dir == Path("./data")
            mock_mkdir.assert_called_once_with(parents=True, exist_ok=True)

    def test_create_recording_path(self, file_manager):
        """Test recording path creation."""
        path = file_manager.create_recording_path()

        assert Path(path).parent == file_manager.recordings_dir
        assert re.fullmatch(r"recording_\d+_[a-z0-9]{8}\.wav", Path(path).name)
        # Only a path is allocated, nothing is written yet
        assert not os.path.exists(path)

    def test_recording_paths_are_unique(self, file_manager):
        """Test that recording paths are unique."""
        paths = {file_manager.create_recording_path() for _ in range(50)}

        assert len(paths) == 50

    def test_custom_extension(self, file_manager):
        """Test a custom file extension."""
        assert file_manager.create_recording_path(".m4a").endswith(".m4a")

    def test_file_size(self, file_manager):
        """Test file size."""
        path = file_manager.create_recording_path()
        Path(path).write_bytes(b"\x00" * 1234)

        assert file_manager.file_size(path) == 1234

    def test_file_size_missing_file(self, file_manager):
        """Test file size of a missing file."""
        assert file_manager.file_size(file_manager.create_recording_path()) == 0

    def test_discard_ignores_missing_file(self, file_manager):
        """Test that discarding a missing file is ignored."""
        file_manager.discard(file_manager.create_recording_path())

    def test_cleanup_old_recordings(self, file_manager):
        """Test cleanup of old recordings."""
        old_path = Path(file_manager.create_recording_path())
        new_path = Path(file_manager.create_recording_path())
        old_path.write_bytes(b"old")
        new_path.write_bytes(b"new")
        ten_days_ago = time.time() - 10 * 24 * 60 * 60
        os.utime(old_path, (ten_days_ago, ten_days_ago))

        removed = file_manager.cleanup_old_recordings(max_age_days=7)

        assert removed == 1
        assert not old_path.exists()
        assert new_path.exists()
