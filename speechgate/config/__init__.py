"""Simple YAML configuration loader for SpeechGate."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..ingest.size_gate import DEFAULT_MAXIMUM_FILE_SIZE_BYTES
from ..models.validation import QualityThresholds
from ..scoring.scorer import SpeechScorer
from ..transcription.fallback import TranscriptionFallbackPolicy

logger = logging.getLogger(__name__)

# Paths resolved relative to the config file location
RELATIVE_PATH_KEYS = (
    'storage.data_directory',
    'logging.file_path',
    'transcription.google_cloud.credentials_path',
)


class SpeechGateConfig:
    """SpeechGate configuration loader."""

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file
        """
        if not config_path:
            raise ValueError("A configuration file path is required (e.g. speechgate.yaml)")
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping")

        self._resolve_paths(config)
        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent
        for key_path in RELATIVE_PATH_KEYS:
            *parents, leaf = key_path.split('.')
            section = config
            for key in parents:
                section = section.get(key) if isinstance(section, dict) else None
            if isinstance(section, dict) and section.get(leaf):
                value = str(section[leaf])
                if not os.path.isabs(value):
                    section[leaf] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'capture.minimum_duration').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_quality_thresholds(self) -> QualityThresholds:
        """Build the capture-time gate thresholds from the `capture` section."""
        defaults = QualityThresholds()
        return QualityThresholds(
            minimum_duration=float(self.get('capture.minimum_duration', defaults.minimum_duration)),
            minimum_file_size_bytes=int(self.get('capture.minimum_file_size_bytes',
                                                 defaults.minimum_file_size_bytes)),
            minimum_peak_amplitude=float(self.get('capture.minimum_peak_amplitude',
                                                  defaults.minimum_peak_amplitude)),
            minimum_average_amplitude=float(self.get('capture.minimum_average_amplitude',
                                                     defaults.minimum_average_amplitude)),
        )

    def get_max_duration(self) -> Optional[float]:
        value = self.get('capture.maximum_duration', 30.0)
        return None if value is None else float(value)

    def get_fallback_policy(self) -> TranscriptionFallbackPolicy:
        return TranscriptionFallbackPolicy(
            confidence_factor=float(self.get('transcription.fallback.confidence_factor', 0.5)),
            confidence_ceiling=float(self.get('transcription.fallback.confidence_ceiling', 0.4)),
        )

    def get_scorer(self) -> SpeechScorer:
        return SpeechScorer(
            pass_threshold=float(self.get('scoring.pass_threshold', 0.70)),
            excellent=float(self.get('scoring.excellent', 0.95)),
            good=float(self.get('scoring.good', 0.85)),
            acceptable=float(self.get('scoring.acceptable', 0.75)),
            language_mismatch_ceiling=float(self.get('scoring.language_mismatch_ceiling', 0.3)),
            low_confidence=float(self.get('scoring.low_confidence', 0.5)),
        )

    def get_ingest_size_limits(self) -> Dict[str, Optional[int]]:
        """Minimum and maximum payload sizes for the ingest-side gate.

        The minimum defaults to the capture-side minimum so both gates agree.
        """
        minimum = self.get('ingest.minimum_file_size_bytes',
                           self.get_quality_thresholds().minimum_file_size_bytes)
        maximum = self.get('ingest.maximum_file_size_bytes', DEFAULT_MAXIMUM_FILE_SIZE_BYTES)
        return {
            'minimum_file_size_bytes': int(minimum),
            'maximum_file_size_bytes': None if maximum is None else int(maximum),
        }

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - raises if not configured or missing."""
        creds_path = self.get('transcription.google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured in speechgate.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())
