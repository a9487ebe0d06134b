"""Configuration Manager for the Lookup Backend.

This module loads the configuration that decides where entity lookups are
resolved: an in-process dictionary store or a DuckDB-backed store.

Architecture:
    - Infrastructure layer isolated from the domain and translators
    - Type-safe configuration using Pydantic models
    - Fail-fast validation prevents runtime errors
    - Supports environment variables (with a project .env file) and JSON files
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory", "duckdb")


class LookupConfig(BaseModel):
    """Lookup backend configuration.

    Parameters:
        backend: Store implementation ('memory' or 'duckdb')
        db_path: Path to the DuckDB database file, or ':memory:'
    """

    backend: str = Field(default="memory", description="Lookup backend (memory, duckdb)")
    db_path: str = Field(default=":memory:", description="Path to DuckDB database file")

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate backend name."""
        if v.lower() not in SUPPORTED_BACKENDS:
            raise ValueError(f"Unsupported lookup backend: {v}. Supported: {list(SUPPORTED_BACKENDS)}")
        return v.lower()

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: str) -> str:
        """Validate the database directory exists (the file may not exist yet)."""
        if v == ":memory:":
            return v

        db_path_obj = Path(v)
        if not db_path_obj.parent.exists():
            raise ValueError(f"Database directory does not exist: {db_path_obj.parent}")

        return str(db_path_obj)


class ConfigManager:
    """Configuration manager for the translation layer.

    Example Usage:
        ```python
        # Load from environment variables
        config = ConfigManager.from_environment()
        lookup_config = config.get_lookup_config()

        # Load from file
        config = ConfigManager.from_file("config.json")
        lookup_config = config.get_lookup_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        """Initialize configuration manager.

        Parameters:
            config_data: Configuration dictionary
        """
        self._config_data = config_data
        self._lookup_config: Optional[LookupConfig] = None

    @classmethod
    def from_environment(cls) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - FB_LOOKUP_BACKEND: Lookup backend (memory, duckdb)
            - FB_DB_PATH: Path to DuckDB database file

        A ``.env`` file in the project root is loaded first if present;
        variables already set in the environment take precedence.

        Returns:
            ConfigManager instance
        """
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")

        lookup: Dict[str, Any] = {"backend": os.getenv("FB_LOOKUP_BACKEND", "memory")}
        if os.getenv("FB_DB_PATH"):
            lookup["db_path"] = os.getenv("FB_DB_PATH")

        return cls({"lookup": lookup})

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Parameters:
            config_path: Path to configuration file

        Returns:
            ConfigManager instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a JSON object")

        return cls(config_data)

    def get_lookup_config(self) -> LookupConfig:
        """Get the validated lookup backend configuration."""
        if self._lookup_config is None:
            self._lookup_config = LookupConfig(**self._config_data.get("lookup", {}))
        return self._lookup_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Parameters:
            key: Configuration key (supports dot notation, e.g., "lookup.backend")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config_data

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default


# ============================================================================
# Convenience Functions
# ============================================================================

def get_lookup_config() -> LookupConfig:
    """Load the lookup configuration from the environment.

    Defaults to the in-memory backend when nothing is configured.
    """
    return ConfigManager.from_environment().get_lookup_config()
