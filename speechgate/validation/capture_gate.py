"""Capture-time quality gate run when a recording stops."""

import logging

from ..models.recording import RecordingSession
from ..models.validation import QualityThresholds, RejectionReason, ValidationOutcome

logger = logging.getLogger(__name__)


def validate_capture(elapsed_duration: float,
                     file_size_bytes: int,
                     peak_amplitude: float,
                     average_amplitude: float,
                     thresholds: QualityThresholds,
                     output_location: str) -> ValidationOutcome:
    """Decide whether a stopped recording may leave the device.

    Checks run in a fixed order (duration, file size, peak amplitude) and the
    first failing check is the reported reason. A low average amplitude is
    only logged: scoring is done by the backend, the gate only filters gross
    silence.

    Args:
        elapsed_duration: Recorded time in seconds
        file_size_bytes: Size of the finalized file
        peak_amplitude: Highest normalized sample seen (0.0-1.0)
        average_amplitude: Mean of the recent sample window (0.0-1.0)
        thresholds: Gate configuration
        output_location: Where the recording lives; returned unchanged on accept

    Returns:
        ValidationOutcome, accepted or rejected with exactly one reason
    """
    if elapsed_duration < thresholds.minimum_duration:
        logger.info(f"Rejected: too short ({elapsed_duration:.2f}s < {thresholds.minimum_duration}s)")
        return ValidationOutcome.reject(RejectionReason.TOO_SHORT)

    if file_size_bytes < thresholds.minimum_file_size_bytes:
        logger.info(f"Rejected: file too small ({file_size_bytes} < {thresholds.minimum_file_size_bytes} bytes)")
        return ValidationOutcome.reject(RejectionReason.FILE_TOO_SMALL)

    if peak_amplitude < thresholds.minimum_peak_amplitude:
        logger.info(f"Rejected: too quiet (peak {peak_amplitude:.3f} < {thresholds.minimum_peak_amplitude})")
        return ValidationOutcome.reject(RejectionReason.TOO_QUIET)

    if average_amplitude < thresholds.minimum_average_amplitude:
        logger.warning(f"Low average amplitude {average_amplitude:.3f} "
                       f"(advisory threshold {thresholds.minimum_average_amplitude}); accepting anyway")

    logger.info(f"Accepted recording: {elapsed_duration:.2f}s, {file_size_bytes} bytes, "
                f"peak {peak_amplitude:.3f}")
    return ValidationOutcome.accept(output_location)


def validate_session(session: RecordingSession,
                     file_size_bytes: int,
                     thresholds: QualityThresholds) -> ValidationOutcome:
    """Run the gate against a quiescent session snapshot."""
    return validate_capture(
        elapsed_duration=session.elapsed_duration,
        file_size_bytes=file_size_bytes,
        peak_amplitude=session.peak_amplitude,
        average_amplitude=session.average_amplitude,
        thresholds=thresholds,
        output_location=session.output_location,
    )
