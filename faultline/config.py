"""
Error capture configuration management.
"""

import socket
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Capture settings loaded from environment variables (FAULTLINE_*)."""

    # Identity
    application_name: str = "faultline"
    machine_name: str = socket.gethostname()

    # Chain walking
    data_include_pattern: Optional[str] = None  # Regex over exception data keys

    # Rollup
    rollup_per_server: bool = False
    rollup_period_seconds: int = 600

    # In-memory store
    memory_store_size: int = 200

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "FAULTLINE_"
        env_file = ".env"
        case_sensitive = False

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Settings":
        """
        Load settings from a YAML file.

        Environment variables still apply to keys the file does not set.

        Args:
            path: Path to the YAML file

        Returns:
            Settings instance

        Raises:
            FileNotFoundError: If the file does not exist
            yaml.YAMLError: If the file is malformed
            ValueError: If the document is not a mapping
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file must contain a mapping: {path}")

        return cls(**data)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Return the global settings instance."""
    return settings
