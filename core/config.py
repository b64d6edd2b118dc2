"""
Configuration Management Module

This module handles loading, validating, and providing access to application configuration
from environment variables (.env file).

Uses Pydantic Settings for automatic validation and type conversion.

Key Features:
- Loads configuration from .env file
- Validates all required settings
- Provides type-safe access to configuration values
- Exposes per-exchange credentials as named Credential objects
- Makes the HTTP timeout/retry policy explicit instead of relying on transport defaults

Usage:
    from core.config import settings

    # Access configuration values
    print(settings.bitbay_base_url)
    print(settings.credentials_for("bitbay"))  # [Credential(name='publicKey'), ...]
"""

from datetime import datetime
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.credentials import credentials_from_mapping
from core.schemas import Credential


class Settings(BaseSettings):
    """
    Application Settings

    This class defines all configuration parameters for the exchange layer.
    Values are automatically loaded from environment variables or .env file.

    Attributes:
        date_format: strftime/strptime format shared by all adapters for textual timestamps
        debug: Enable verbose request/response logging
        log_level: Logging level
        request_timeout: Total timeout for one HTTP request in seconds
        max_retries: Attempts per request for transient failures (1 = no retry)
        retry_backoff: Base delay between attempts; attempt N waits backoff * N
        history_limit: Page size requested from exchanges (largest = full history)
        bitbay_base_url: BitBay REST API base URL
        bitbay_public_key: BitBay API public key
        bitbay_private_key: BitBay API private key
    """

    # ============================================
    # Shared Decoding Configuration
    # ============================================

    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Format of textual exchange timestamps"
    )

    # ============================================
    # Application Configuration
    # ============================================

    debug: bool = Field(
        default=False,
        description="Log every HTTP request and response body"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ============================================
    # Transport Policy
    # ============================================

    request_timeout: float = Field(
        default=30.0,
        description="HTTP request timeout in seconds"
    )

    max_retries: int = Field(
        default=3,
        description="Maximum attempts per request on transient failures"
    )

    retry_backoff: float = Field(
        default=1.5,
        description="Linear backoff base between attempts (seconds)"
    )

    history_limit: int = Field(
        default=1_000_000_000,
        description="Maximum number of history items requested in one call"
    )

    # ============================================
    # BitBay API Configuration
    # ============================================

    bitbay_base_url: str = Field(
        default="https://api.bitbay.net/rest/",
        description="BitBay REST API base URL"
    )

    bitbay_public_key: str = Field(
        default="",
        description="BitBay API public key"
    )

    bitbay_private_key: str = Field(
        default="",
        description="BitBay API private key"
    )

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        # Look for .env file in the project root
        env_file=".env",
        # Ignore extra fields in .env that aren't defined here
        extra="ignore",
        # Case-insensitive environment variable matching
        case_sensitive=False
    )

    # ============================================
    # Helpers
    # ============================================

    def credentials_for(self, exchange: str) -> List[Credential]:
        """
        Get the configured credentials of an exchange.

        Args:
            exchange: Exchange name (e.g., "bitbay")

        Returns:
            List of Credential objects; blank values are left out so that a
            half-configured exchange fails the adapter's required-name check.

        Example:
            >>> [c.name for c in settings.credentials_for("bitbay")]
            ['publicKey', 'privateKey']
        """
        exchange = exchange.lower()
        if exchange == "bitbay":
            return credentials_from_mapping({
                "publicKey": self.bitbay_public_key,
                "privateKey": self.bitbay_private_key,
            })
        return []


# ============================================
# Global Settings Instance
# ============================================

# Create a single instance of settings to be imported throughout the application
settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Settings = None) -> None:
    """
    Validate critical configuration settings on startup.

    Args:
        config: Settings to check (defaults to the global instance)

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    # Import logger here to avoid circular import
    # (logging.py imports config.py, so we can't import at module level)
    from core.logging import logger

    config = config or settings

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if config.request_timeout <= 0:
        raise ValueError(f"REQUEST_TIMEOUT must be positive, got {config.request_timeout}")

    if config.max_retries < 1:
        raise ValueError(f"MAX_RETRIES must be at least 1, got {config.max_retries}")

    if config.retry_backoff < 0:
        raise ValueError(f"RETRY_BACKOFF cannot be negative, got {config.retry_backoff}")

    if config.history_limit <= 0:
        raise ValueError(f"HISTORY_LIMIT must be positive, got {config.history_limit}")

    # A format without directives would silently accept only one literal string
    if "%" not in config.date_format:
        raise ValueError(f"DATE_FORMAT has no format directives: '{config.date_format}'")
    sample = datetime(2018, 1, 2, 3, 4, 5)
    try:
        datetime.strptime(sample.strftime(config.date_format), config.date_format)
    except ValueError as e:
        raise ValueError(f"DATE_FORMAT '{config.date_format}' cannot round-trip: {e}")

    logger.info("Configuration validated successfully")
    logger.info(f"Date format: {config.date_format}")
    logger.info(f"HTTP policy: timeout={config.request_timeout}s, attempts={config.max_retries}")
    logger.info(f"BitBay API: {config.bitbay_base_url}")
    logger.info(f"Log level: {config.log_level.upper()}")
