"""Environment settings."""

import os
from typing import Any, Dict, Optional


class Settings:
    """Application settings from environment variables."""

    # Environment variable -> (section, key) in the configuration tree
    ENV_MAPPING = {
        "NIFCLOUD_NAS_INSTANCE_ID": ("target", "nas_instance_id"),
        "NIFCLOUD_REGION": ("target", "region"),
        "NIFCLOUD_ACCESS_KEY_ID": ("credentials", "access_key_id"),
        "NIFCLOUD_SECRET_ACCESS_KEY": ("credentials", "secret_access_key"),
    }

    @staticmethod
    def get(key: str, default: Optional[str] = None, required: bool = False) -> str:
        """
        Get environment variable value.

        Args:
            key: Environment variable name
            default: Default value if not set
            required: Whether the variable is required

        Returns:
            str: Environment variable value

        Raises:
            ValueError: If required variable is not set
        """
        value = os.getenv(key, default)
        if required and not value:
            raise ValueError(f"Required environment variable not set: {key}")
        return value or ""

    @staticmethod
    def as_config() -> Dict[str, Dict[str, Any]]:
        """
        Collect the configuration values present in the environment.

        Returns:
            Dict: Nested configuration fragment, only with variables that are set
        """
        fragment: Dict[str, Dict[str, Any]] = {}
        for env_var, (section, key) in Settings.ENV_MAPPING.items():
            value = Settings.get(env_var)
            if value:
                fragment.setdefault(section, {})[key] = value
        return fragment

    @staticmethod
    def log_level() -> str:
        return Settings.get("LOG_LEVEL", "INFO").upper()
