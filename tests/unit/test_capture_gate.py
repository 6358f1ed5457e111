"""Unit tests for the capture-time quality gate."""

import logging

import pytest

from speechgate.models.recording import RecordingSession
from speechgate.models.validation import QualityThresholds, RejectionReason, ValidationOutcome
from speechgate.validation import validate_capture, validate_session

LOCATION = "/tmp/recordings/recording_1_abc.wav"


def run_gate(duration, size, peak, average=0.5, thresholds=None):
    return validate_capture(
        elapsed_duration=duration,
        file_size_bytes=size,
        peak_amplitude=peak,
        average_amplitude=average,
        thresholds=thresholds or QualityThresholds(),
        output_location=LOCATION,
    )


@pytest.mark.unit
class TestCaptureGate:
    """Test cases for validate_capture."""

    def test_short_recording_rejected(self):
        """Test that a recording under the minimum duration is rejected."""
        outcome = run_gate(duration=0.3, size=6000, peak=0.5)

        assert outcome == ValidationOutcome.reject(RejectionReason.TOO_SHORT)
        assert outcome.output_location is None

    def test_small_file_rejected(self):
        """Test that a file under the minimum size is rejected."""
        outcome = run_gate(duration=1.0, size=4000, peak=0.5)

        assert outcome.reason == RejectionReason.FILE_TOO_SMALL

    def test_quiet_recording_rejected(self):
        """Test that a recording under the minimum peak is rejected."""
        outcome = run_gate(duration=1.0, size=6000, peak=0.01)

        assert outcome.reason == RejectionReason.TOO_QUIET

    def test_good_recording_accepted_with_location_unchanged(self):
        """Test that an accepted recording keeps its location."""
        outcome = run_gate(duration=1.0, size=6000, peak=0.3)

        assert outcome.accepted is True
        assert outcome.output_location == LOCATION
        assert outcome.reason is None

    @pytest.mark.parametrize("size,peak", [(0, 0.0), (100, 0.9), (10_000_000, 1.0)])
    def test_duration_checked_first(self, size, peak):
        """Test that duration is checked before size and amplitude."""
        assert run_gate(duration=0.49, size=size, peak=peak).reason == RejectionReason.TOO_SHORT

    @pytest.mark.parametrize("peak", [0.0, 0.02, 1.0])
    def test_size_checked_before_amplitude(self, peak):
        """Test that size is checked before amplitude."""
        assert run_gate(duration=0.5, size=4999, peak=peak).reason == RejectionReason.FILE_TOO_SMALL

    def test_thresholds_are_inclusive(self):
        """Test that values exactly at a threshold pass."""
        outcome = run_gate(duration=0.5, size=5000, peak=0.03)

        assert outcome.accepted is True

    def test_low_average_is_advisory_only(self, caplog):
        """Test that a low average only logs a warning."""
        with caplog.at_level(logging.WARNING):
            outcome = run_gate(duration=1.0, size=6000, peak=0.3, average=0.001)

        assert outcome.accepted is True
        assert "Low average amplitude" in caplog.text

    def test_custom_thresholds(self):
        """Test validation with custom thresholds."""
        strict = QualityThresholds(minimum_duration=2.0, minimum_file_size_bytes=100,
                                   minimum_peak_amplitude=0.5, minimum_average_amplitude=0.0)

        assert run_gate(1.5, 6000, 0.9, thresholds=strict).reason == RejectionReason.TOO_SHORT
        assert run_gate(2.5, 6000, 0.4, thresholds=strict).reason == RejectionReason.TOO_QUIET
        assert run_gate(2.5, 200, 0.6, thresholds=strict).accepted is True

    def test_validate_session_uses_snapshot(self):
        """Test validating a session snapshot."""
        session = RecordingSession(session_id="abc", output_location=LOCATION)
        session.elapsed_duration = 1.2
        for value in (0.1, 0.4, 0.2):
            session.record_sample(value)

        outcome = validate_session(session, 6000, QualityThresholds())

        assert outcome == ValidationOutcome.accept(LOCATION)
