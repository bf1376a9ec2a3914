"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from .models import ExporterConfig
from .settings import Settings


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load_from_file(config_path: str) -> Dict[str, Any]:
        """
        Load raw configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Dict: Raw configuration tree

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration root must be a mapping: {config_path}")

        return ConfigLoader._substitute_env_vars(raw_config)

    @staticmethod
    def build(
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> ExporterConfig:
        """
        Assemble configuration from environment, optional file and overrides.

        Precedence, lowest first: model defaults, environment, YAML file,
        overrides (command-line flags). None values in overrides are ignored.

        Args:
            config_path: Optional path to YAML configuration file
            overrides: Nested dict of explicitly provided values

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config_path is given but doesn't exist
            pydantic.ValidationError: If configuration validation fails
        """
        raw_config = Settings.as_config()

        if config_path:
            raw_config = ConfigLoader._merge(raw_config, ConfigLoader.load_from_file(config_path))

        if overrides:
            raw_config = ConfigLoader._merge(raw_config, overrides)

        # Validate with Pydantic
        return ExporterConfig(**raw_config)

    @staticmethod
    def _merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge update into a copy of base, skipping None values."""
        merged = dict(base)
        for key, value in update.items():
            if value is None:
                continue
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = ConfigLoader._merge(merged[key], value)
            elif isinstance(value, dict):
                merged[key] = ConfigLoader._merge({}, value)
            else:
                merged[key] = value
        return merged

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
