"""
Time Utilities

Exchanges report trade times in different shapes:
- BitBay: milliseconds since epoch as a JSON string (e.g., "1529586986021")
- Some exchanges: seconds since epoch (e.g., 1529586986)
- Others: formatted text (e.g., "2018-06-21 13:16:26") decoded with the
  shared DATE_FORMAT setting

Everything is normalized into timezone-aware UTC datetimes before it reaches
the Transaction schema.
"""

from datetime import datetime, timezone
from typing import Optional, Union


def to_utc_datetime(timestamp: Union[int, float], milliseconds: Optional[bool] = None) -> datetime:
    """
    Convert an epoch timestamp (seconds or milliseconds) to UTC datetime.

    Args:
        timestamp: Epoch value
        milliseconds: Unit of ``timestamp``. When None, values above 1e12
            are treated as milliseconds and everything else as seconds.

    Raises:
        ValueError: If timestamp is negative or out of range

    Examples:
        >>> to_utc_datetime(1529586986021)
        datetime.datetime(2018, 6, 21, 13, 16, 26, 21000, tzinfo=datetime.timezone.utc)
        >>> to_utc_datetime(1529586986)
        datetime.datetime(2018, 6, 21, 13, 16, 26, tzinfo=datetime.timezone.utc)
        >>> to_utc_datetime(946684800000, milliseconds=True).year
        2000
    """
    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    if milliseconds is None:
        milliseconds = timestamp > 1e12

    try:
        seconds = timestamp / 1000.0 if milliseconds else timestamp
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def parse_exchange_time(
    value: Union[str, int, float],
    date_format: str,
    epoch_milliseconds: Optional[bool] = None
) -> datetime:
    """
    Decode an exchange timestamp into a UTC datetime.

    Numbers and digit-only strings are epoch values; any other string is
    parsed with ``date_format`` and, when it carries no offset, assumed UTC.

    Args:
        value: Raw timestamp from the exchange payload
        date_format: strptime format shared across adapters
        epoch_milliseconds: Unit of epoch values, if the exchange fixes one
            (None guesses from the magnitude)

    Raises:
        ValueError: If the value matches neither shape

    Examples:
        >>> parse_exchange_time("1529586986021", "%Y-%m-%d %H:%M:%S").year
        2018
        >>> parse_exchange_time("2018-06-21 13:16:26", "%Y-%m-%d %H:%M:%S").hour
        13
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        return to_utc_datetime(value, epoch_milliseconds)

    text = value.strip()
    if text.isdigit():
        return to_utc_datetime(int(text), epoch_milliseconds)

    parsed = datetime.strptime(text, date_format)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def datetime_to_timestamp(dt: datetime, milliseconds: bool = False) -> int:
    """
    Convert a datetime to a Unix timestamp (naive datetimes are taken as UTC).

    Used to turn HistoryQuery time bounds into the millisecond values
    exchanges expect.

    Examples:
        >>> datetime_to_timestamp(datetime(2024, 1, 1, 12, tzinfo=timezone.utc), milliseconds=True)
        1704110400000
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    timestamp = int(dt.timestamp())
    if milliseconds:
        timestamp *= 1000
    return timestamp


def current_utc_timestamp(milliseconds: bool = False) -> int:
    """Current Unix time in seconds (or milliseconds)."""
    return datetime_to_timestamp(datetime.now(timezone.utc), milliseconds)
