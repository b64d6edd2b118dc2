"""
Unified Logging Configuration

This module sets up a centralized logging system for the entire application.
All modules should import and use the logger from this module instead of
using print() statements.

Usage:
    from core.logging import logger

    logger.debug("Detailed debugging information")
    logger.info("General informational messages")
    logger.error("Error messages for serious problems")

Log Levels (from most to least verbose):
    DEBUG    - Request/response dumps when verbose HTTP logging is enabled
    INFO     - General informational messages (e.g., "Fetched 42 transactions")
    WARNING  - Retries and other recoverable conditions
    ERROR    - Classified fetch failures (transport, decode, exchange-reported)
    CRITICAL - Not used by the exchange layer

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.
    Verbose HTTP logging is a separate DEBUG setting passed explicitly to
    each adapter, not a process-wide flag.
"""

import logging
import sys
from typing import Optional


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include module name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Application started")
        2024-01-01 12:00:00 [INFO] taxledger: Application started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger("taxledger")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level
except ImportError:
    log_level = "INFO"

# Create the global logger instance
logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module or component.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger instance for the specified name

    Example:
        # In exchanges/bitbay/api_client.py:
        from core.logging import get_logger
        logger = get_logger(__name__)  # "taxledger.exchanges.bitbay.api_client"
    """
    return logging.getLogger(f"taxledger.{name}")


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, endpoint: str, params: dict = None, headers: dict = None) -> None:
    """
    Log an API request with consistent formatting.

    Secret-bearing headers are masked; only their presence is logged.

    Example:
        >>> log_api_request("bitbay", "trading/history/transactions", {"query": "..."})
        [DEBUG] API Request: bitbay trading/history/transactions | Params: {'query': '...'}
    """
    message = f"API Request: {exchange} {endpoint}"
    if params:
        message += f" | Params: {params}"
    if headers:
        shown = {k: ("***" if k.lower() in ("api-hash", "api-key") else v) for k, v in headers.items()}
        message += f" | Headers: {shown}"
    logger.debug(message)


def log_api_response(exchange: str, endpoint: str, status: int, response_time: float = None, body: str = None) -> None:
    """
    Log an API response with status, timing and (optionally) the raw body.

    Example:
        >>> log_api_response("bitbay", "trading/history/transactions", 200, 0.342)
        [DEBUG] API Response: bitbay trading/history/transactions | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    body_str = f" | Body: {body}" if body is not None else ""
    logger.debug(f"API Response: {exchange} {endpoint} | Status: {status}{time_str}{body_str}")


logger.debug("Logging system initialized")
