"""
Configuration for the Assessment Engine

This module provides the configuration models for the engine, loaded from
defaults, an optional YAML or JSON file, and environment variables, with
type checking and validation.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator
from pydantic import ValidationError as PydanticValidationError

from lexiq.common.exceptions import ConfigurationError
from lexiq.common.utils import normalize_keys

# Configure logging
logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Assessment engine configuration"""
    time_limit_seconds: Optional[int] = Field(default=None, description="Omitted means untimed")
    pass_threshold_percent: float = Field(default=70.0, description="Used for feedback tiers")
    autosave_quiet_ms: int = Field(default=5000)
    autosave_min_chars: int = Field(default=0)
    tick_interval_seconds: float = Field(default=1.0)
    shuffle_questions: bool = Field(default=False)
    shuffle_seed: Optional[int] = Field(default=None)
    practice_question_count: int = Field(default=10)

    @validator('time_limit_seconds')
    def validate_time_limit(cls, v):
        """Validate the time limit is positive when set"""
        if v is not None and v <= 0:
            raise ValueError(f"Time limit must be positive, got {v}")
        return v

    @validator('pass_threshold_percent')
    def validate_pass_threshold(cls, v):
        """Validate threshold is a percentage"""
        if not 0 <= v <= 100:
            raise ValueError(f"Pass threshold must be between 0 and 100, got {v}")
        return v

    @validator('autosave_quiet_ms', 'tick_interval_seconds', 'practice_question_count')
    def validate_positive(cls, v):
        """Validate durations and counts are positive"""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @validator('autosave_min_chars')
    def validate_min_chars(cls, v):
        """Validate the autosave length floor"""
        if v < 0:
            raise ValueError(f"Minimum autosave length cannot be negative, got {v}")
        return v

    @property
    def autosave_quiet_seconds(self) -> float:
        """Autosave quiet period in seconds"""
        return self.autosave_quiet_ms / 1000.0

    @property
    def is_timed(self) -> bool:
        """Whether sessions started with this config run a countdown"""
        return self.time_limit_seconds is not None

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> 'EngineConfig':
        """
        Build an engine config from an option mapping.

        Accepts camelCase keys (timeLimitSeconds, passThresholdPercent,
        autosaveQuietMs) as well as snake_case.

        Raises:
            ConfigurationError: If an option has an invalid value
        """
        try:
            return cls(**normalize_keys(options or {}))
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid engine options: {e}", original_exception=e)


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field(default="INFO")
    use_json: bool = Field(default=False)
    file_path: Optional[str] = Field(default=None)

    @validator('level')
    def validate_level(cls, v):
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AppConfig(BaseModel):
    """Top-level configuration"""
    app_name: str = Field(default="LexIQ")
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "LEXIQ_TIME_LIMIT_SECONDS": ("engine", "time_limit_seconds"),
    "LEXIQ_PASS_THRESHOLD_PERCENT": ("engine", "pass_threshold_percent"),
    "LEXIQ_AUTOSAVE_QUIET_MS": ("engine", "autosave_quiet_ms"),
    "LEXIQ_AUTOSAVE_MIN_CHARS": ("engine", "autosave_min_chars"),
    "LEXIQ_TICK_INTERVAL_SECONDS": ("engine", "tick_interval_seconds"),
    "LEXIQ_SHUFFLE_QUESTIONS": ("engine", "shuffle_questions"),
    "LEXIQ_SHUFFLE_SEED": ("engine", "shuffle_seed"),
    "LEXIQ_PRACTICE_QUESTION_COUNT": ("engine", "practice_question_count"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_JSON": ("logging", "use_json"),
    "LOG_FILE": ("logging", "file_path"),
}


class ConfigLoader:
    """
    Configuration loader for the engine.

    Loads configuration from:
    1. Default values
    2. Config file (YAML or JSON)
    3. Environment variables, including a .env file (highest priority)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        env_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize the config loader.

        Args:
            config_path: Path to config file (YAML or JSON)
            env_file: Path to a .env file (defaults to .env in the working directory)
            environ: Environment mapping to read instead of os.environ
        """
        self.config_path = config_path or os.environ.get("CONFIG_PATH")
        self.env_file = env_file
        self.environ = environ
        self._config: Optional[AppConfig] = None

    def load(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Loaded configuration

        Raises:
            ConfigurationError: If the file is unreadable or a value is invalid
        """
        if self._config is not None:
            return self._config

        data: Dict[str, Any] = {}
        if self.config_path:
            data = self._load_from_file(self.config_path)

        for section, values in self._load_from_environment().items():
            data.setdefault(section, {}).update(values)

        try:
            self._config = AppConfig(**data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", original_exception=e)

        logger.debug(f"Loaded configuration for {self._config.app_name}")
        return self._config

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            path: Path to config file

        Returns:
            Loaded configuration dictionary with snake_case keys
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        suffix = path.suffix.lower()
        try:
            with open(path, 'r', encoding='utf-8') as f:
                if suffix in ['.yaml', '.yml']:
                    raw = yaml.safe_load(f)
                elif suffix == '.json':
                    raw = json.load(f)
                else:
                    raise ConfigurationError(
                        f"Unsupported config file format: {path.suffix}",
                        config_key="config_path"
                    )
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Error loading config file {path}: {e}", original_exception=e)

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return normalize_keys(raw, recursive=True)

    def _load_from_environment(self) -> Dict[str, Dict[str, Any]]:
        """Collect overrides from environment variables."""
        if self.environ is None:
            # Does not override variables that are already set
            load_dotenv(self.env_file)
            environ: Mapping[str, str] = os.environ
        else:
            environ = self.environ

        overrides: Dict[str, Dict[str, Any]] = {}
        for name, (section, key) in ENV_OVERRIDES.items():
            value = environ.get(name)
            if value is None or value == "":
                continue
            overrides.setdefault(section, {})[key] = value
        return overrides


def load_config(config_path: Optional[str] = None, env_file: Optional[str] = None) -> AppConfig:
    """
    Load a fresh configuration.

    Args:
        config_path: Path to config file
        env_file: Path to a .env file

    Returns:
        Loaded configuration
    """
    return ConfigLoader(config_path, env_file).load()
