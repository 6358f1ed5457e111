"""Unit tests for amplitude sampling and tick sources."""

import threading
import time

import pytest

from speechgate.audio.sampler import AmplitudeSampler, normalize_power
from speechgate.audio.ticks import ThreadingTickSource
from speechgate.models.recording import RecordingSession


@pytest.mark.unit
class TestNormalizePower:
    """Test cases for normalize_power."""

    @pytest.mark.parametrize("power_db,expected", [
        (-160.0, 0.0),
        (-80.0, 0.5),
        (0.0, 1.0),
        (-40.0, 0.75),
    ])
    def test_linear_mapping(self, power_db, expected):
        """Test the linear power to amplitude mapping."""
        assert normalize_power(power_db) == pytest.approx(expected)

    @pytest.mark.parametrize("power_db,expected", [(-200.0, 0.0), (6.0, 1.0)])
    def test_out_of_range_is_clamped(self, power_db, expected):
        """Test that out-of-range power is clamped."""
        assert normalize_power(power_db) == expected

    def test_missing_source_is_zero(self):
        """Test that a missing level is zero."""
        assert normalize_power(None) == 0.0
        assert normalize_power(float("nan")) == 0.0

    def test_custom_range(self):
        """Test a custom power range."""
        assert normalize_power(-30.0, min_db=-60.0, max_db=0.0) == pytest.approx(0.5)


@pytest.mark.unit
class TestAmplitudeSampler:
    """Test cases for AmplitudeSampler."""

    def test_sample_feeds_session(self):
        """Test that a sample feeds the session accumulators."""
        sampler = AmplitudeSampler()
        session = RecordingSession(session_id="s1")

        value = sampler.sample(session, -80.0)

        assert value == pytest.approx(0.5)
        assert session.peak_amplitude == pytest.approx(0.5)
        assert list(session.amplitude_sample_window) == [pytest.approx(0.5)]
        assert sampler.samples_taken == 1

    def test_no_source_yields_zero_sample(self):
        """Test that no level reading yields a zero sample."""
        sampler = AmplitudeSampler()
        session = RecordingSession(session_id="s1")

        assert sampler.sample(session, None) == 0.0
        assert list(session.amplitude_sample_window) == [0.0]

    def test_invalid_range(self):
        """Test an invalid power range."""
        with pytest.raises(ValueError):
            AmplitudeSampler(min_db=0.0, max_db=-10.0)


@pytest.mark.unit
class TestThreadingTickSource:
    """Test cases for ThreadingTickSource."""

    def test_ticks_until_stopped(self):
        """Test that ticks fire until stopped."""
        ticks = ThreadingTickSource(0.01, name="test")
        fired = threading.Event()
        count = []

        def on_tick():
            count.append(1)
            if len(count) >= 3:
                fired.set()

        ticks.start(on_tick)
        assert fired.wait(timeout=2.0)
        ticks.stop()
        settled = len(count)
        time.sleep(0.05)

        assert ticks.running is False
        assert len(count) == settled

    def test_stop_from_callback_does_not_deadlock(self):
        """Test stopping from inside a tick callback."""
        ticks = ThreadingTickSource(0.01, name="self-stop")
        done = threading.Event()

        def on_tick():
            ticks.stop()
            done.set()

        ticks.start(on_tick)

        assert done.wait(timeout=2.0)
        assert ticks.running is False

    def test_callback_errors_do_not_stop_ticks(self):
        """Test that a failing callback does not stop ticks."""
        ticks = ThreadingTickSource(0.01, name="errors")
        calls = []
        recovered = threading.Event()

        def on_tick():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            recovered.set()

        ticks.start(on_tick)
        try:
            assert recovered.wait(timeout=2.0)
        finally:
            ticks.stop()

    def test_invalid_interval(self):
        """Test an invalid tick interval."""
        with pytest.raises(ValueError):
            ThreadingTickSource(0)
