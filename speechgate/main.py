"""Main application entry point for SpeechGate."""

import sys
import time
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from .config import SpeechGateConfig
from .errors import InvalidStateError, SpeechGateError
from .models.validation import QualityThresholds
from .ui.result_screen import ResultScreen
from .validation.capture_gate import validate_capture

logger = logging.getLogger(__name__)


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/speechgate.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("SpeechGate starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def load_config(config_path: Optional[str], log_level: Optional[str]) -> SpeechGateConfig:
    config = SpeechGateConfig(config_path)
    setup_logging(config, log_level or config.get('logging.level', 'INFO'))
    return config


def run_serve(args) -> None:
    """Run the ingest web service."""
    from aiohttp import web

    from .ingest.server import create_app
    from .ingest.service import IngestService
    from .transcription.google_backend import GoogleSpeechBackend

    config = load_config(args.config, args.log_level)
    if args.host:
        config.set('ingest.host', args.host)
    if args.port:
        config.set('ingest.port', args.port)
    backend = GoogleSpeechBackend(
        credentials_path=config.get_google_credentials_path(),
        sample_rate=config.get('audio.sample_rate', 16000),
        use_enhanced=config.get('transcription.google_cloud.use_enhanced', True),
        enable_automatic_punctuation=config.get('transcription.google_cloud.enable_automatic_punctuation', True),
        alternative_language_codes=config.get('transcription.google_cloud.alternative_language_codes', []),
        request_timeout=config.get('transcription.google_cloud.request_timeout', 30.0),
    )
    backend.initialize()

    service = IngestService(
        backend,
        policy=config.get_fallback_policy(),
        scorer=config.get_scorer(),
        **config.get_ingest_size_limits(),
        history_limit=int(config.get('ingest.history_limit', 20)),
        max_tracked_steps=int(config.get('ingest.max_tracked_steps', 10000)),
    )
    app = create_app(service, transcription_timeout=config.get('ingest.transcription_timeout', 60.0))
    host = config.get('ingest.host', '127.0.0.1')
    port = int(config.get('ingest.port', 8080))
    logger.info(f"Serving speech validation on http://{host}:{port}")
    try:
        web.run_app(app, host=host, port=port, print=None)
    finally:
        backend.cleanup()


def run_check(args, screen: ResultScreen) -> int:
    """Run the capture-time gate against given measurements."""
    if args.config:
        thresholds = load_config(args.config, args.log_level).get_quality_thresholds()
    else:
        thresholds = QualityThresholds()
    outcome = validate_capture(
        elapsed_duration=args.duration,
        file_size_bytes=args.size,
        peak_amplitude=args.peak,
        average_amplitude=args.average,
        thresholds=thresholds,
        output_location=args.file,
    )
    screen.show_outcome(outcome, duration=args.duration, peak_amplitude=args.peak)
    return 0 if outcome.accepted else 2


def run_record(args, screen: ResultScreen) -> int:
    """Record from the microphone, validate, and optionally upload."""
    from .audio.capture import PyAudioCaptureDevice
    from .services.recording_session import RecordingSessionManager
    from .storage.file_manager import FileManager

    config = load_config(args.config, args.log_level)
    if args.url:
        config.set('client.base_url', args.url)
    device = PyAudioCaptureDevice(
        sample_rate=config.get('audio.sample_rate', 16000),
        chunk_size=config.get('audio.chunk_size', 1024),
        channels=config.get('audio.channels', 1),
    )
    file_manager = FileManager(config.get_data_directory())
    retention_days = config.get('storage.retention_days', 7)
    if retention_days is not None:
        file_manager.cleanup_old_recordings(max_age_days=float(retention_days))
    manager = RecordingSessionManager(
        device,
        file_manager,
        thresholds=config.get_quality_thresholds(),
        max_duration=config.get_max_duration(),
    )

    session = manager.start()
    screen.console.print(f"🔴 Recording for {args.seconds:.1f}s... (Ctrl+C to cancel)", style="bold red")
    try:
        deadline = time.time() + args.seconds
        while manager.is_active and time.time() < deadline:
            time.sleep(0.1)
    except KeyboardInterrupt:
        manager.cancel()
        screen.console.print("Recording cancelled", style="yellow")
        return 1

    duration = session.elapsed_duration
    peak = session.peak_amplitude
    if manager.is_active:
        try:
            manager.stop()
        except InvalidStateError:
            # The maximum-duration auto-stop won the race.
            logger.debug("Session already stopped by the duration limit")
        duration = session.elapsed_duration
        peak = session.peak_amplitude
    outcome = manager.last_outcome
    if outcome is None:
        raise manager.last_error or SpeechGateError("Recording ended without an outcome")

    screen.show_outcome(outcome, duration=duration, peak_amplitude=peak)
    if not outcome.accepted:
        return 2
    if not args.upload:
        return 0
    return upload_recording(args, config, screen, outcome.output_location)


def upload_recording(args, config: SpeechGateConfig, screen: ResultScreen, audio_path: str) -> int:
    from .client.uploader import SpeechValidationClient

    if not (args.lesson and args.expected and args.language):
        raise ValueError("--upload requires --lesson, --expected and --language")

    client = SpeechValidationClient(
        base_url=config.get('client.base_url', 'http://127.0.0.1:8080'),
        upload_timeout=config.get('client.upload_timeout', 60.0),
        auth_token=config.get('client.auth_token'),
    )
    response = asyncio.run(client.validate_speech(
        audio_path,
        lesson_id=args.lesson,
        step_index=args.step,
        expected_text=args.expected,
        language_code=args.language,
    ))
    screen.show_response(response)
    return 0 if response.validation.passed else 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SpeechGate - recording quality gates and pronunciation scoring",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (e.g. speechgate.yaml)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="SpeechGate v0.1.0"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the speech validation web service")
    serve.add_argument("--host", type=str, help="Bind address (overrides config)")
    serve.add_argument("--port", type=int, help="Port (overrides config)")

    check = subparsers.add_parser("check", help="Run the capture-time gate on measurements")
    check.add_argument("--duration", type=float, required=True, help="Recorded duration in seconds")
    check.add_argument("--size", type=int, required=True, help="Encoded file size in bytes")
    check.add_argument("--peak", type=float, required=True, help="Peak normalized amplitude (0-1)")
    check.add_argument("--average", type=float, default=0.0, help="Average normalized amplitude (0-1)")
    check.add_argument("--file", type=str, default="recording.wav", help="Output location reported on accept")

    record = subparsers.add_parser("record", help="Record from the microphone and validate")
    record.add_argument("--seconds", type=float, default=3.0, help="Recording length in seconds (default: 3)")
    record.add_argument("--upload", action="store_true", help="Upload accepted recordings for scoring")
    record.add_argument("--url", type=str, help="Validation server base URL (overrides config)")
    record.add_argument("--lesson", type=str, help="Lesson identifier")
    record.add_argument("--step", type=int, default=0, help="Lesson step index (default: 0)")
    record.add_argument("--expected", type=str, help="Phrase the speaker is expected to say")
    record.add_argument("--language", type=str, help="Expected language code, e.g. es-ES")

    return parser


def main(argv=None) -> None:
    """Main entry point for SpeechGate."""
    args = build_parser().parse_args(argv)
    screen = ResultScreen()
    try:
        if args.command == "serve":
            run_serve(args)
            exit_code = 0
        elif args.command == "check":
            exit_code = run_check(args, screen)
        else:
            exit_code = run_record(args, screen)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 0
    except SpeechGateError as e:
        screen.show_error(e)
        logging.error(f"Application error: {e}")
        exit_code = 1
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
