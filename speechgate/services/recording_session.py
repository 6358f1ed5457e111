"""Recording session state machine owning the capture device."""

import logging
import threading
import uuid
from datetime import datetime
from typing import Optional

from ..audio.device import CaptureDevice, PermissionProvider, AlwaysGrantedPermission
from ..audio.publisher import SessionEventPublisher
from ..audio.sampler import AmplitudeSampler
from ..audio.ticks import TickSource, ThreadingTickSource
from ..errors import CaptureFault, CaptureFaultReason, InvalidStateError
from ..models.events import StateChangeEvent
from ..models.recording import RecordingSession, RecordingState, DEFAULT_WINDOW_CAPACITY
from ..models.validation import QualityThresholds, ValidationOutcome
from ..storage.file_manager import FileManager
from ..validation.capture_gate import validate_session

logger = logging.getLogger(__name__)

ACTIVE_STATES = (RecordingState.RECORDING, RecordingState.PAUSED)


class RecordingSessionManager:
    """Runs one recording session at a time against an exclusively owned device.

    idle -> recording <-> paused -> stopped, recording/paused -> idle on cancel,
    any state -> error on a capture fault. A stopped session is validated and
    consumed; the caller gets back a ValidationOutcome.
    """

    def __init__(self,
                 device: CaptureDevice,
                 file_manager: FileManager,
                 thresholds: Optional[QualityThresholds] = None,
                 permissions: Optional[PermissionProvider] = None,
                 level_ticks: Optional[TickSource] = None,
                 elapsed_ticks: Optional[TickSource] = None,
                 sampler: Optional[AmplitudeSampler] = None,
                 publisher: Optional[SessionEventPublisher] = None,
                 max_duration: Optional[float] = 30.0,
                 window_capacity: int = DEFAULT_WINDOW_CAPACITY):
        """Initialize the session manager.

        Args:
            device: Capture device used by every session of this manager
            file_manager: Allocates and removes recording files
            thresholds: Capture-time gate configuration
            permissions: Microphone permission provider
            level_ticks: Tick source for amplitude sampling (default every 50 ms)
            elapsed_ticks: Tick source for the elapsed-time ticker (default every 100 ms)
            sampler: Amplitude sampler
            publisher: Lifecycle event publisher
            max_duration: Seconds after which a recording stops on its own (None disables)
            window_capacity: Size of each session's amplitude sample window
        """
        self.device = device
        self.file_manager = file_manager
        self.thresholds = thresholds or QualityThresholds()
        self.permissions = permissions or AlwaysGrantedPermission()
        self.level_ticks = level_ticks or ThreadingTickSource(0.05, name="level")
        self.elapsed_ticks = elapsed_ticks or ThreadingTickSource(0.1, name="elapsed")
        self.sampler = sampler or AmplitudeSampler()
        self.publisher = publisher or SessionEventPublisher()
        self.max_duration = max_duration
        self.window_capacity = window_capacity

        self.session: Optional[RecordingSession] = None
        self.last_error: Optional[CaptureFault] = None
        self.last_outcome: Optional[ValidationOutcome] = None
        self._state = RecordingState.IDLE
        self._lock = threading.RLock()

        self.device.set_fault_handler(self._on_device_fault)

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in ACTIVE_STATES

    def start(self) -> RecordingSession:
        """Start a new session.

        Raises:
            InvalidStateError: If a session is already recording or paused
            CaptureFault: If permission is denied or the device cannot record
        """
        with self._lock:
            if self.is_active:
                raise InvalidStateError(f"Cannot start recording in current state: {self._state.value}")

            if not self.permissions.request():
                logger.error("Microphone permission denied")
                raise self._fail(CaptureFault(CaptureFaultReason.PERMISSION_DENIED))

            session = RecordingSession(
                session_id=uuid.uuid4().hex[:8],
                output_location=self.file_manager.create_recording_path(),
                window_capacity=self.window_capacity,
            )
            session.reset_accumulators()
            session.start_time = datetime.now()
            self.session = session
            self.last_error = None
            self.last_outcome = None

            try:
                self.device.prepare(session.output_location)
                self.device.record()
            except CaptureFault as fault:
                raise self._fail(fault)
            except Exception as e:
                raise self._fail(CaptureFault(CaptureFaultReason.DEVICE_UNAVAILABLE, str(e))) from e

            self._transition(RecordingState.RECORDING)
            self._start_ticks()
            logger.info(f"Recording started: session {session.session_id} -> {session.output_location}")
            return session

    def pause(self) -> None:
        """Pause the active recording, keeping peak and sample window.

        Raises:
            InvalidStateError: If not currently recording
        """
        with self._lock:
            if self._state != RecordingState.RECORDING:
                raise InvalidStateError(f"Cannot pause - not recording (state: {self._state.value})")
            self._halt_ticks()
            self.device.pause()
            self._transition(RecordingState.PAUSED)
            logger.info(f"Recording paused at {self.session.elapsed_duration:.2f} seconds")

    def resume(self) -> None:
        """Resume a paused recording without resetting its accumulators.

        Raises:
            InvalidStateError: If not currently paused
        """
        with self._lock:
            if self._state != RecordingState.PAUSED:
                raise InvalidStateError(f"Cannot resume - not paused (state: {self._state.value})")
            try:
                self.device.record()
            except CaptureFault as fault:
                raise self._fail(fault)
            self._transition(RecordingState.RECORDING)
            self._start_ticks()
            logger.info("Recording resumed")

    def stop(self) -> ValidationOutcome:
        """Stop the session, run the capture-time gate and consume the session.

        Rejected recordings are deleted; accepted ones stay at the returned location.

        Raises:
            InvalidStateError: If nothing is recording or paused
            CaptureFault: If the device fails to finalize the file
        """
        with self._lock:
            if not self.is_active:
                raise InvalidStateError(f"No active recording to stop (state: {self._state.value})")

            # Ticks are fully halted before the snapshot is taken.
            self._halt_ticks()
            session = self.session
            session.elapsed_duration = self.device.current_time()
            try:
                self.device.stop()
            except CaptureFault as fault:
                raise self._fail(fault)

            file_size = self.file_manager.file_size(session.output_location)
            self._transition(RecordingState.STOPPED)
            logger.info(f"Recording stopped. Duration: {session.elapsed_duration:.2f} seconds, "
                        f"Size: {file_size} bytes")

            outcome = validate_session(session, file_size, self.thresholds)
            if not outcome.accepted:
                self.file_manager.discard(session.output_location)
            self.last_outcome = outcome
            self.session = None
            return outcome

    def cancel(self) -> None:
        """Discard the active recording and return to idle. No validation runs.

        Outside recording/paused this is a no-op.
        """
        with self._lock:
            if not self.is_active:
                logger.debug(f"Cancel ignored in state {self._state.value}")
                return
            self._halt_ticks()
            self.device.discard()
            self.file_manager.discard(self.session.output_location)
            self.session.reset_accumulators()
            self._transition(RecordingState.IDLE)
            self.session = None
            logger.info("Recording cancelled")

    def fault(self, reason: CaptureFaultReason, detail: Optional[str] = None) -> CaptureFault:
        """Move to error(reason) from any state; terminal for the current session."""
        with self._lock:
            return self._fail(CaptureFault(reason, detail))

    def _on_device_fault(self, reason: CaptureFaultReason, detail: str) -> None:
        with self._lock:
            if not self.is_active:
                logger.debug(f"Ignoring device fault {reason.value} in state {self._state.value}")
                return
            self._fail(CaptureFault(reason, detail))

    def _fail(self, fault: CaptureFault) -> CaptureFault:
        self._halt_ticks()
        if self.session is not None:
            try:
                self.device.discard()
            except Exception as e:
                logger.warning(f"Error discarding capture after fault: {e}")
            self.file_manager.discard(self.session.output_location)
            self.session.last_error = fault
        self.last_error = fault
        self._transition(RecordingState.ERROR, detail=fault.reason.value)
        self.publisher.publish_fault(fault)
        self.session = None
        logger.error(f"Recording fault: {fault}")
        return fault

    def _start_ticks(self) -> None:
        self.level_ticks.start(self._on_level_tick)
        self.elapsed_ticks.start(self._on_elapsed_tick)

    def _halt_ticks(self) -> None:
        self.level_ticks.stop()
        self.elapsed_ticks.stop()

    def _on_level_tick(self) -> None:
        # Ticks never block on the lock: a tick that races a transition is skipped.
        if not self._lock.acquire(blocking=False):
            return
        try:
            if self._state != RecordingState.RECORDING or self.session is None:
                return
            try:
                power = self.device.average_power()
            except Exception as e:
                logger.debug(f"Audio level unavailable: {e}")
                power = None
            value = self.sampler.sample(self.session, power)
        finally:
            self._lock.release()
        self.publisher.publish_level(value)

    def _on_elapsed_tick(self) -> None:
        if not self._lock.acquire(blocking=False):
            return
        try:
            if self._state != RecordingState.RECORDING or self.session is None:
                return
            self.session.elapsed_duration = self.device.current_time()
            if self.max_duration is None or self.session.elapsed_duration < self.max_duration:
                return
            logger.info(f"Maximum duration {self.max_duration}s reached, stopping")
            outcome = self.stop()
        finally:
            self._lock.release()
        self.publisher.publish_completed(outcome)

    def _transition(self, new_state: RecordingState, detail: Optional[str] = None) -> None:
        old_state = self._state
        self._state = new_state
        session_id = None
        if self.session is not None:
            self.session.state = new_state
            session_id = self.session.session_id
        if old_state != new_state:
            self.publisher.publish_state_change(
                StateChangeEvent(session_id=session_id, old_state=old_state,
                                 new_state=new_state, detail=detail))
