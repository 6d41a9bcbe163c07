"""
Configuration manager for the pedestrian navigation system.
"""

import copy
import json
import logging
import os
from typing import Dict, Any, Optional

from .math.constants import (AHRS_BETA, AHRS_SAMPLE_FREQ_HZ, INITIAL_COVARIANCE,
                              PROCESS_NOISE, DEFAULT_GPS_ACCURACY_M, SINGULAR_THRESHOLD,
                              STEP_LENGTH_M, STEP_BUFFER_LENGTH, STEP_MIN_THRESHOLD,
                              STEP_STD_FACTOR, STEP_MIN_INTERVAL_S)

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager for the pedestrian navigation system."""

    DEFAULT_CONFIG = {
        # Orientation filter
        "ahrs": {
            "beta": AHRS_BETA,
            "sample_freq_hz": AHRS_SAMPLE_FREQ_HZ
        },

        # Step EKF
        "ekf": {
            "initial_covariance": INITIAL_COVARIANCE,
            "process_noise": PROCESS_NOISE,
            "default_gps_accuracy_m": DEFAULT_GPS_ACCURACY_M,
            "joseph_form": True,
            "singular_threshold": SINGULAR_THRESHOLD
        },

        # Step detection
        "step": {
            "length_m": STEP_LENGTH_M,
            "buffer_length": STEP_BUFFER_LENGTH,
            "min_threshold": STEP_MIN_THRESHOLD,
            "std_factor": STEP_STD_FACTOR,
            "min_interval_s": STEP_MIN_INTERVAL_S
        },

        # Track history kept by the navigator
        "history": {
            "max_points": 1000
        },

        # Logging
        "log_level": "INFO",
        "log_file": None
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_file: Optional path to a JSON configuration file
        """
        self.config_file = config_file
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file is None:
            return

        if os.path.exists(config_file):
            self.load_config()
        else:
            logger.info("Config file %s not found, using defaults", config_file)

    def load_config(self) -> bool:
        """
        Load configuration from file.

        Returns:
            True if loaded successfully
        """
        try:
            with open(self.config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load config %s: %s", self.config_file, e)
            return False

        if not isinstance(file_config, dict):
            logger.warning("Ignoring config %s: top level is not an object", self.config_file)
            return False

        # File config overrides defaults
        self._merge_config(self.config, file_config)

        logger.info("Configuration loaded from %s", self.config_file)
        return True

    def save_config(self, config_file: Optional[str] = None) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if saved successfully
        """
        path = config_file or self.config_file
        if path is None:
            raise ValueError("No config file path given")

        try:
            with open(path, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.warning("Failed to save config %s: %s", path, e)
            return False

        logger.info("Configuration saved to %s", path)
        return True

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]):
        """Recursively merge configuration dictionaries."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default=None):
        """Get configuration value with optional default."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        """Set configuration value."""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    # Property accessors for common configuration values
    @property
    def ahrs(self) -> Dict[str, float]:
        return self.config["ahrs"]

    @property
    def ekf(self) -> Dict[str, Any]:
        return self.config["ekf"]

    @property
    def step(self) -> Dict[str, float]:
        return self.config["step"]

    @property
    def step_length(self) -> float:
        return self.config["step"]["length_m"]

    @property
    def default_gps_accuracy(self) -> float:
        return self.config["ekf"]["default_gps_accuracy_m"]

    @property
    def max_history(self) -> int:
        return self.config["history"]["max_points"]

    @property
    def log_level(self) -> str:
        return self.config["log_level"]

    @property
    def log_file(self) -> Optional[str]:
        return self.config["log_file"]

    def dumps(self) -> str:
        return json.dumps(self.config, indent=2)


def setup_logging(config: Config):
    """Configure root logging from the log_level / log_file settings."""
    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    kwargs = {
        "level": level,
        "format": "%(asctime)s %(levelname)s %(name)s: %(message)s"
    }
    if config.log_file:
        kwargs["filename"] = config.log_file

    logging.basicConfig(**kwargs)
