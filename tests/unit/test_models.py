"""Unit tests for recording and validation models."""

import pytest

from speechgate.models import (
    QualityThresholds,
    RecordingSession,
    RecordingState,
    RejectionReason,
    ValidationOutcome,
)


@pytest.mark.unit
class TestRecordingSession:
    """Test cases for RecordingSession accumulators."""

    def test_initial_state(self):
        """Test a new session's accumulators."""
        session = RecordingSession(session_id="s1")

        assert session.state == RecordingState.IDLE
        assert session.peak_amplitude == 0.0
        assert session.average_amplitude == 0.0
        assert len(session.amplitude_sample_window) == 0
        assert session.amplitude_sample_window.maxlen == 100

    def test_window_never_exceeds_capacity(self):
        """Test that the sample window never exceeds its capacity."""
        session = RecordingSession(session_id="s1", window_capacity=5)

        for i in range(23):
            session.record_sample(i / 100)

        assert len(session.amplitude_sample_window) == 5

    def test_window_evicts_oldest_first(self):
        """Test that the sample window evicts the oldest sample."""
        session = RecordingSession(session_id="s1", window_capacity=3)

        for value in (0.1, 0.2, 0.3, 0.4):
            session.record_sample(value)

        assert list(session.amplitude_sample_window) == [0.2, 0.3, 0.4]

    def test_peak_is_running_maximum(self):
        """Test that the peak is the running maximum."""
        session = RecordingSession(session_id="s1", window_capacity=2)
        values = [0.2, 0.9, 0.1, 0.4, 0.3]

        for value in values:
            session.record_sample(value)

        # Peak survives eviction of the sample that set it
        assert session.peak_amplitude == max(values)
        assert 0.9 not in session.amplitude_sample_window

    def test_samples_are_clamped(self):
        """Test that samples are clamped to 0-1."""
        session = RecordingSession(session_id="s1")

        session.record_sample(1.7)
        session.record_sample(-0.3)

        assert list(session.amplitude_sample_window) == [1.0, 0.0]
        assert session.peak_amplitude == 1.0

    def test_average_amplitude(self):
        """Test the average amplitude."""
        session = RecordingSession(session_id="s1")
        for value in (0.2, 0.4, 0.6):
            session.record_sample(value)

        assert session.average_amplitude == pytest.approx(0.4)

    def test_reset_accumulators(self):
        """Test resetting the accumulators."""
        session = RecordingSession(session_id="s1")
        session.record_sample(0.8)
        session.elapsed_duration = 3.0

        session.reset_accumulators()

        assert session.peak_amplitude == 0.0
        assert session.elapsed_duration == 0.0
        assert len(session.amplitude_sample_window) == 0

    def test_invalid_capacity(self):
        """Test an invalid window capacity."""
        with pytest.raises(ValueError):
            RecordingSession(session_id="s1", window_capacity=0)


@pytest.mark.unit
class TestQualityThresholds:
    """Test cases for QualityThresholds."""

    def test_defaults(self):
        """Test default thresholds."""
        thresholds = QualityThresholds()

        assert thresholds.minimum_duration == 0.5
        assert thresholds.minimum_file_size_bytes == 5000
        assert thresholds.minimum_peak_amplitude == 0.03
        assert thresholds.minimum_average_amplitude == 0.02

    @pytest.mark.parametrize("kwargs", [
        {"minimum_duration": -1.0},
        {"minimum_file_size_bytes": -5},
        {"minimum_peak_amplitude": 1.5},
        {"minimum_average_amplitude": -0.1},
    ])
    def test_invalid_values(self, kwargs):
        """Test invalid threshold values."""
        with pytest.raises(ValueError):
            QualityThresholds(**kwargs)


@pytest.mark.unit
class TestValidationOutcome:
    """Test cases for ValidationOutcome."""

    def test_accepted_wire_shape(self):
        """Test the wire shape of an accepted outcome."""
        outcome = ValidationOutcome.accept("/data/recordings/a.wav")

        assert outcome.to_dict() == {"accepted": True, "outputLocation": "/data/recordings/a.wav"}

    def test_rejected_wire_shape(self):
        """Test the wire shape of a rejected outcome."""
        outcome = ValidationOutcome.reject(RejectionReason.TOO_QUIET)

        assert outcome.to_dict() == {"accepted": False, "reason": "too_quiet"}

    def test_exactly_one_variant(self):
        """Test that an outcome is either accepted or rejected."""
        with pytest.raises(ValueError):
            ValidationOutcome(accepted=True, output_location="a.wav", reason=RejectionReason.TOO_SHORT)
        with pytest.raises(ValueError):
            ValidationOutcome(accepted=False)
