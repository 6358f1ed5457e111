"""Unit tests for SpeechGateConfig."""

from pathlib import Path

import pytest
import yaml

from speechgate.config import SpeechGateConfig


def write_config(directory, data):
    path = Path(directory) / "speechgate.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


@pytest.fixture
def config_data():
    return {
        "capture": {
            "minimum_duration": 0.8,
            "minimum_file_size_bytes": 6000,
            "minimum_peak_amplitude": 0.05,
            "minimum_average_amplitude": 0.01,
            "maximum_duration": 20,
        },
        "storage": {"data_directory": "data"},
        "ingest": {"maximum_file_size_bytes": 2048000},
        "transcription": {
            "google_cloud": {"credentials_path": "creds/service.json"},
            "fallback": {"confidence_factor": 0.4, "confidence_ceiling": 0.3},
        },
        "scoring": {"pass_threshold": 0.72, "low_confidence": 0.6},
        "logging": {"level": "DEBUG", "file_path": "logs/speechgate.log"},
    }


@pytest.mark.unit
class TestSpeechGateConfig:
    """Test cases for SpeechGateConfig."""

    def test_missing_file(self, temp_data_dir):
        """Test that a missing config file is an error."""
        with pytest.raises(FileNotFoundError):
            SpeechGateConfig(str(Path(temp_data_dir) / "missing.yaml"))

    def test_empty_file(self, temp_data_dir):
        """Test loading an empty config file."""
        path = Path(temp_data_dir) / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(ValueError):
            SpeechGateConfig(str(path))

    def test_invalid_yaml(self, temp_data_dir):
        """Test that invalid YAML is an error."""
        path = Path(temp_data_dir) / "bad.yaml"
        path.write_text("capture: [unclosed", encoding="utf-8")

        with pytest.raises(ValueError):
            SpeechGateConfig(str(path))

    def test_get_and_set(self, temp_data_dir, config_data):
        """Test dot-path get and set."""
        config = SpeechGateConfig(write_config(temp_data_dir, config_data))

        assert config.get("capture.minimum_duration") == 0.8
        assert config.get("capture.nope", "fallback") == "fallback"

        config.set("client.base_url", "http://example.test")
        assert config.get("client.base_url") == "http://example.test"

    def test_relative_paths_resolved(self, temp_data_dir, config_data):
        """Test that relative paths resolve against the config directory."""
        config = SpeechGateConfig(write_config(temp_data_dir, config_data))

        assert config.get("storage.data_directory") == str(Path(temp_data_dir) / "data")
        assert config.get("logging.file_path") == str(Path(temp_data_dir) / "logs/speechgate.log")
        assert config.get("transcription.google_cloud.credentials_path") == \
            str(Path(temp_data_dir) / "creds/service.json")

    def test_quality_thresholds(self, temp_data_dir, config_data):
        """Test quality thresholds from config."""
        thresholds = SpeechGateConfig(write_config(temp_data_dir, config_data)).get_quality_thresholds()

        assert thresholds.minimum_duration == 0.8
        assert thresholds.minimum_file_size_bytes == 6000
        assert thresholds.minimum_peak_amplitude == 0.05
        assert thresholds.minimum_average_amplitude == 0.01

    def test_quality_threshold_defaults(self, temp_data_dir):
        """Test quality threshold defaults."""
        config = SpeechGateConfig(write_config(temp_data_dir, {"logging": {"level": "INFO"}}))

        thresholds = config.get_quality_thresholds()

        assert thresholds.minimum_duration == 0.5
        assert thresholds.minimum_file_size_bytes == 5000
        assert config.get_max_duration() == 30.0

    def test_fallback_policy_and_scorer(self, temp_data_dir, config_data):
        """Test fallback policy and scorer settings from config."""
        config = SpeechGateConfig(write_config(temp_data_dir, config_data))

        policy = config.get_fallback_policy()
        scorer = config.get_scorer()

        assert policy.confidence_factor == 0.4
        assert policy.confidence_ceiling == 0.3
        assert scorer.pass_threshold == 0.72
        assert scorer.excellent == 0.95
        assert scorer.low_confidence == 0.6

    def test_ingest_size_limits_follow_capture_minimum(self, temp_data_dir, config_data):
        """Test that ingest size limits follow the capture minimum."""
        config = SpeechGateConfig(write_config(temp_data_dir, config_data))

        assert config.get_ingest_size_limits() == {
            "minimum_file_size_bytes": 6000,
            "maximum_file_size_bytes": 2048000,
        }

    def test_max_duration(self, temp_data_dir, config_data):
        """Test the maximum recording duration setting."""
        config = SpeechGateConfig(write_config(temp_data_dir, config_data))

        assert config.get_max_duration() == 20.0

    def test_missing_credentials_file(self, temp_data_dir, config_data):
        """Test that a missing credentials file is an error."""
        config = SpeechGateConfig(write_config(temp_data_dir, config_data))

        with pytest.raises(FileNotFoundError):
            config.get_google_credentials_path()

    def test_example_config_loads(self):
        """Test that the shipped example config loads."""
        example = Path(__file__).resolve().parents[2] / "speechgate.yaml"

        config = SpeechGateConfig(str(example))

        assert config.get_quality_thresholds().minimum_file_size_bytes == 5000
        assert config.get_fallback_policy().confidence_ceiling < config.get_scorer().pass_threshold
