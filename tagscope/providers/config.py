"""Configuration system for the beacon decoding engine.

Configuration is assembled from an optional YAML file, then environment
variable overrides, then validated by pydantic. The parsing core never reads
configuration on its own: callers load an ``EngineConfig`` and hand it to
``build_registry``.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .base import ProviderType
from .body import DEFAULT_MAX_DEPTH
from .errors import ConfigurationError


logger = logging.getLogger(__name__)

ENV_PREFIX = "TAGSCOPE_"


class ProviderToggle(BaseModel):
    """Per-provider settings."""

    enabled: bool = Field(default=True, description="Whether the provider is registered")


class EngineConfig(BaseModel):
    """Root configuration for provider registration and beacon processing."""

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        le=50,
        description="Maximum nesting depth expanded when flattening JSON bodies"
    )

    mask_user_data: bool = Field(
        default=True,
        description="Mask personally identifiable user-data fields"
    )

    providers: Dict[str, ProviderToggle] = Field(
        default_factory=dict,
        description="Per-provider toggles keyed by provider key"
    )

    provider_types: List[ProviderType] = Field(
        default_factory=list,
        description="Type categories kept by beacon processing (empty keeps all)"
    )

    include_raw: bool = Field(
        default=False,
        description="Attach raw URL and body to processed beacons"
    )

    @field_validator('providers', mode='before')
    @classmethod
    def normalize_provider_keys(cls, v):
        """Provider keys are matched case-insensitively."""
        if not v:
            return {}
        normalized = {}
        for key, value in dict(v).items():
            if isinstance(value, bool):
                value = {"enabled": value}
            normalized[str(key).upper()] = value
        return normalized

    def is_enabled(self, provider_key: str) -> bool:
        toggle = self.providers.get(provider_key.upper())
        return toggle.enabled if toggle is not None else True

    def provider_info(self) -> Dict[str, Dict[str, Any]]:
        """Toggles in the shape ``ProviderRegistry.get_pattern`` accepts."""
        return {key: toggle.model_dump() for key, toggle in self.providers.items()}


class ConfigManager:
    """Manages engine configuration loading and validation."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[EngineConfig] = None

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
        """Load configuration from file and environment.

        Args:
            config_path: Optional override for config file path

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If the file cannot be read or the values are invalid
        """
        if config_path:
            self.config_path = Path(config_path)

        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigurationError(f"Config file not found: {self.config_path}")
            try:
                with open(self.config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}")

            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")

        self._merge_config(config_data, self._load_environment_variables())

        try:
            self._config = EngineConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

        logger.debug(f"Loaded engine configuration (max_depth={self._config.max_depth})")
        return self._config

    def get_config(self) -> EngineConfig:
        """Get current configuration, loading default if needed."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def validate_config(self, config_data: Dict[str, Any]) -> List[str]:
        """Check configuration values without keeping them.

        Returns:
            One ``"location: message"`` entry per invalid value
        """
        try:
            EngineConfig(**config_data)
        except ValidationError as e:
            return [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
        return []

    def create_default_config(self, output_path: Union[str, Path]) -> None:
        """Write the default configuration as YAML."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            yaml.safe_dump(EngineConfig().model_dump(mode="json"), f, default_flow_style=False, indent=2)

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration overrides from ``TAGSCOPE_*`` variables."""
        env_config: Dict[str, Any] = {}

        if max_depth := os.getenv(f'{ENV_PREFIX}MAX_DEPTH'):
            env_config['max_depth'] = max_depth

        if (mask := os.getenv(f'{ENV_PREFIX}MASK_USER_DATA')) is not None:
            env_config['mask_user_data'] = mask.strip().lower() in ('1', 'true', 'yes')

        if (include_raw := os.getenv(f'{ENV_PREFIX}INCLUDE_RAW')) is not None:
            env_config['include_raw'] = include_raw.strip().lower() in ('1', 'true', 'yes')

        if disabled := os.getenv(f'{ENV_PREFIX}DISABLED_PROVIDERS'):
            env_config['providers'] = {
                key.strip().upper(): {'enabled': False}
                for key in disabled.split(',') if key.strip()
            }

        return env_config

    def _merge_config(self, base_config: Dict[str, Any], override_config: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries."""
        for key, value in override_config.items():
            if key in base_config and isinstance(base_config[key], dict) and isinstance(value, dict):
                self._merge_config(base_config[key], value)
            else:
                base_config[key] = value


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load configuration from an optional file plus the environment."""
    return ConfigManager(config_path).load_config()
