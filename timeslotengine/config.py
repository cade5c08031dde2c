"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator


class CacheConfig(BaseModel):
    """Profile cache settings."""
    enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    ttl_seconds: int = 3600
    key_prefix: str = ""

    @field_validator("ttl_seconds")
    @classmethod
    def validate_ttl(cls, value: int) -> int:
        """Ensure cache entries expire."""
        if value <= 0:
            raise ValueError("ttl_seconds must be greater than zero")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Sofia"
    lookup_timeout_seconds: Optional[float] = 5.0
    self_service: bool = False
    data_file: Optional[Path] = None
    log_level: str = "INFO"
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("lookup_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("lookup_timeout_seconds must be greater than zero")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            # Relative data files are resolved next to the config file.
            config = config.model_copy(update={"data_file": config_path.parent / config.data_file})
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load the configuration, falling back to defaults.

    An explicitly given path must exist; the default location is optional.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
