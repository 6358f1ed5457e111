"""Pytest configuration and fixtures for SpeechGate tests."""

import pytest
import tempfile
import logging
import time
import wave
from pathlib import Path
from typing import Callable, List, Optional
from unittest.mock import Mock, patch

import numpy as np
from pubsub import pub

from speechgate.audio.publisher import SessionEventPublisher
from speechgate.errors import CaptureFaultReason
from speechgate.models.validation import QualityThresholds
from speechgate.services.recording_session import RecordingSessionManager
from speechgate.storage.file_manager import FileManager


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several components")


class FakeTickSource:
    """Tick source driven by the test instead of a timer thread."""

    def __init__(self):
        self.callback: Optional[Callable[[], None]] = None
        self.running = False
        self.start_count = 0
        self.stop_count = 0

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.running = True
        self.start_count += 1

    def stop(self) -> None:
        self.running = False
        self.stop_count += 1

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.running:
                self.callback()


class FakeCaptureDevice:
    """In-memory capture device; `stop()` writes `file_bytes` bytes to the prepared path."""

    def __init__(self, file_bytes: int = 8000):
        self.file_bytes = file_bytes
        self.output_path: Optional[str] = None
        self.recording = False
        self.time = 0.0
        self.power_db: Optional[float] = None
        self.fault_handler = None
        self.record_error: Optional[Exception] = None
        self.stop_error: Optional[Exception] = None
        self.calls: List[str] = []

    def set_fault_handler(self, handler) -> None:
        self.fault_handler = handler

    def prepare(self, output_path: str) -> None:
        self.calls.append("prepare")
        self.output_path = output_path

    def record(self) -> None:
        self.calls.append("record")
        if self.record_error is not None:
            raise self.record_error
        self.recording = True

    def pause(self) -> None:
        self.calls.append("pause")
        self.recording = False

    def stop(self) -> None:
        self.calls.append("stop")
        self.recording = False
        if self.stop_error is not None:
            raise self.stop_error
        Path(self.output_path).write_bytes(b"\x01" * self.file_bytes)

    def discard(self) -> None:
        self.calls.append("discard")
        self.recording = False

    def current_time(self) -> float:
        return self.time

    def average_power(self) -> Optional[float]:
        return self.power_db

    def emit_fault(self, reason: CaptureFaultReason, detail: str = "") -> None:
        self.recording = False
        self.fault_handler(reason, detail)


class FakePermission:
    def __init__(self, granted: bool = True):
        self.granted = granted

    def request(self) -> bool:
        return self.granted


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def file_manager(temp_data_dir):
    return FileManager(temp_data_dir)


@pytest.fixture
def fake_device():
    return FakeCaptureDevice()


@pytest.fixture
def level_ticks():
    return FakeTickSource()


@pytest.fixture
def elapsed_ticks():
    return FakeTickSource()


@pytest.fixture
def permissions():
    return FakePermission()


@pytest.fixture
def thresholds():
    return QualityThresholds(
        minimum_duration=0.5,
        minimum_file_size_bytes=5000,
        minimum_peak_amplitude=0.03,
        minimum_average_amplitude=0.02,
    )


@pytest.fixture
def session_manager(fake_device, file_manager, thresholds, permissions, level_ticks, elapsed_ticks):
    """Recording session manager wired to fakes."""
    return RecordingSessionManager(
        fake_device,
        file_manager,
        thresholds=thresholds,
        permissions=permissions,
        level_ticks=level_ticks,
        elapsed_ticks=elapsed_ticks,
        publisher=SessionEventPublisher(),
        max_duration=30.0,
    )


@pytest.fixture
def published():
    """Collect every message published on the recording topics."""
    received = {"state": [], "level": [], "completed": [], "fault": []}

    def on_state(event):
        received["state"].append(event)

    def on_level(amplitude):
        received["level"].append(amplitude)

    def on_completed(outcome):
        received["completed"].append(outcome)

    def on_fault(fault):
        received["fault"].append(fault)

    listeners = [
        (on_state, "recording.state"),
        (on_level, "recording.level"),
        (on_completed, "recording.completed"),
        (on_fault, "recording.fault"),
    ]
    for listener, topic in listeners:
        pub.subscribe(listener, topic)
    yield received
    for listener, topic in listeners:
        pub.unsubscribe(listener, topic)


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # 1024 samples of a 440 Hz sine at half scale
    sample_rate = 16000
    duration = 1024 / sample_rate
    t = np.linspace(0, duration, 1024, False)
    wave_data = 0.5 * np.sin(2 * np.pi * 440 * t)
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a sample WAV file for testing."""
    file_path = Path(temp_data_dir) / "test_audio.wav"

    with wave.open(str(file_path), 'wb') as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(16000)
        for _ in range(20):  # ~1.3 seconds of audio
            wf.writeframes(sample_audio_chunk)

    return str(file_path)


@pytest.fixture
def mock_pyaudio(sample_audio_chunk):
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def read(*args, **kwargs):
            time.sleep(0.005)
            return sample_audio_chunk

        mock_stream.read.side_effect = read
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
