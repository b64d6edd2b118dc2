"""
Core Utilities Package

This package contains utility functions and helpers used throughout the application.

Modules:
    - time: Exchange timestamp decoding and epoch conversion
"""

from core.utils.time import (
    current_utc_timestamp,
    datetime_to_timestamp,
    parse_exchange_time,
    to_utc_datetime,
)

__all__ = ["current_utc_timestamp", "datetime_to_timestamp", "parse_exchange_time", "to_utc_datetime"]
