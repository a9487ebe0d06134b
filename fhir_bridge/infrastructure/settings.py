"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.
"""

import os
from typing import Optional

from fhir_bridge.infrastructure.config_manager import LookupConfig, get_lookup_config

# Application metadata
APP_NAME = "FHIR-Bridge"
APP_VERSION = "0.1.0"


class Settings:
    """Application settings loaded from configuration manager and environment.

    Environment Variables:
        - FB_APP_NAME: Application name used in logs
        - FB_LOG_LEVEL: Logging level (default INFO)
        - FB_LOG_JSON: Emit JSON log lines when "true"
    """

    def __init__(self):
        """Initialize settings from configuration manager and environment."""
        self._lookup_config: Optional[LookupConfig] = None

        self.app_name = os.getenv("FB_APP_NAME", APP_NAME)
        self.log_level = os.getenv("FB_LOG_LEVEL", "INFO")
        self.log_json = os.getenv("FB_LOG_JSON", "false").lower() == "true"

    @property
    def lookup_config(self) -> LookupConfig:
        """Lookup backend configuration, loaded lazily on first access."""
        if self._lookup_config is None:
            self._lookup_config = get_lookup_config()
        return self._lookup_config


# Global settings instance
settings = Settings()
