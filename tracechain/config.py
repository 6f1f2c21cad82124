"""
Configuration Management

Centralized configuration from environment variables with sensible defaults.
"""

import os
from typing import Optional

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Config:
    """Application configuration."""

    # Environment
    ENVIRONMENT = os.environ.get("TRACECHAIN_ENV", "development")

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_JSON = os.environ.get("LOG_JSON", "true" if ENVIRONMENT == "production" else "false").lower() == "true"
    LOG_FILE: Optional[str] = os.environ.get("LOG_FILE") or None

    # Server
    HOST = os.environ.get("HOST", "127.0.0.1")
    PORT = int(os.environ.get("PORT", "8000"))

    # Identifier generation (first issued id is ID_START + 1)
    ID_START = int(os.environ.get("ID_START", "1000"))

    @classmethod
    def validate(cls):
        """Validate configuration and raise errors for invalid values."""
        if cls.LOG_LEVEL.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {', '.join(sorted(_LOG_LEVELS))}, got {cls.LOG_LEVEL!r}"
            )
        if not 0 < cls.PORT < 65536:
            raise ValueError(f"PORT must be between 1 and 65535, got {cls.PORT}")
        if cls.ID_START < 0:
            raise ValueError(f"ID_START must not be negative, got {cls.ID_START}")


def get_config() -> Config:
    """Get validated configuration."""
    Config.validate()
    return Config
