"""PyAudio-backed capture device with level metering."""

import pyaudio
import wave
import logging
from threading import Thread, Event, Lock
from typing import Optional, List
import numpy as np

from ..errors import CaptureFault, CaptureFaultReason
from .device import FaultHandler
from .sampler import MIN_POWER_DB

logger = logging.getLogger(__name__)

INT16_FULL_SCALE = 32768.0


def pcm16_power_db(chunk: bytes) -> float:
    """Compute the RMS power of a 16-bit PCM chunk in dBFS (-160..0)."""
    if not chunk:
        return MIN_POWER_DB
    samples = np.frombuffer(chunk, dtype=np.int16).astype(np.float64)
    if samples.size == 0:
        return MIN_POWER_DB
    rms = float(np.sqrt(np.mean(samples ** 2)))
    if rms <= 0.0:
        return MIN_POWER_DB
    return max(MIN_POWER_DB, min(0.0, 20.0 * float(np.log10(rms / INT16_FULL_SCALE))))


class PyAudioCaptureDevice:
    """Records microphone input to a 16-bit WAV file."""

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize capture device with specified parameters.

        Args:
            sample_rate: Audio sample rate in Hz
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono speech)
            format: Audio format (16-bit signed int)
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        self.output_path: Optional[str] = None
        self.audio_data: List[bytes] = []
        self.recorded_frames = 0
        self.last_power_db: Optional[float] = None

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self._lock = Lock()
        self._fault_handler: Optional[FaultHandler] = None

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None

    def set_fault_handler(self, handler: Optional[FaultHandler]) -> None:
        self._fault_handler = handler

    def prepare(self, output_path: str) -> None:
        """Reset buffers for a new recording at `output_path`."""
        with self._lock:
            self.output_path = output_path
            self.audio_data = []
            self.recorded_frames = 0
            self.last_power_db = None

    def record(self) -> None:
        """Open the stream if needed and start the reader thread."""
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        if self.stream is None:
            self._open_audio_stream()
        else:
            try:
                self.stream.start_stream()
            except Exception as e:
                logger.error(f"Could not restart audio input: {e}")
                raise CaptureFault(CaptureFaultReason.DEVICE_UNAVAILABLE, str(e)) from e

        self.stop_event.clear()
        self.is_recording = True
        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        logger.info("Audio capture running")

    def pause(self) -> None:
        """Stop reading audio and stop the stream so nothing buffers while paused."""
        self._halt_reader()
        if self.stream is not None:
            try:
                self.stream.stop_stream()
            except Exception as e:
                logger.warning(f"Error pausing audio stream: {e}")
        self.last_power_db = None

    def stop(self) -> None:
        """Stop capture and write the WAV file."""
        self._halt_reader()
        self._close_audio_stream()
        self._save_to_file()

    def discard(self) -> None:
        """Stop capture and drop everything recorded so far."""
        self._halt_reader()
        self._close_audio_stream()
        with self._lock:
            self.audio_data = []
            self.recorded_frames = 0
        logger.info("Captured audio discarded")

    def current_time(self) -> float:
        with self._lock:
            return self.recorded_frames / float(self.sample_rate)

    def average_power(self) -> Optional[float]:
        if not self.is_recording:
            return None
        return self.last_power_db

    def _open_audio_stream(self) -> None:
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=None
            )
        except Exception as e:
            logger.error(f"Could not open audio input: {e}")
            self._close_audio_stream()
            raise CaptureFault(CaptureFaultReason.DEVICE_UNAVAILABLE, str(e)) from e
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")

    def _close_audio_stream(self) -> None:
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except Exception as e:
                logger.warning(f"Error closing audio stream: {e}")
            self.stream = None
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def _halt_reader(self) -> None:
        if not self.is_recording:
            return
        self.stop_event.set()
        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")
        self.is_recording = False

    def _record_continuously(self) -> None:
        """Internal method: read chunks until stopped, tracking level and time."""
        while not self.stop_event.is_set():
            try:
                audio_chunk = self.stream.read(self.chunk_size, exception_on_overflow=False)
            except Exception as e:
                logger.error(f"Audio read failed: {e}")
                self.stop_event.set()
                # The handler may discard the device from this thread.
                self.is_recording = False
                if self._fault_handler:
                    self._fault_handler(CaptureFaultReason.DEVICE_UNAVAILABLE, str(e))
                return
            with self._lock:
                self.audio_data.append(audio_chunk)
                self.recorded_frames += len(audio_chunk) // (2 * self.channels)
            self.last_power_db = pcm16_power_db(audio_chunk)

    def _save_to_file(self) -> None:
        if not self.output_path:
            raise CaptureFault(CaptureFaultReason.FILE_NOT_FOUND, "no output path prepared")
        try:
            with wave.open(self.output_path, 'wb') as wf:
                wf.setnchannels(self.channels)
                wf.setsampwidth(2)
                wf.setframerate(self.sample_rate)
                with self._lock:
                    for chunk in self.audio_data:
                        wf.writeframes(chunk)
        except Exception as e:
            logger.error(f"Error saving audio file: {e}")
            raise CaptureFault(CaptureFaultReason.ENCODE_FAILED, str(e)) from e
        logger.info(f"Audio saved to {self.output_path}")
