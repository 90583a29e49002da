"""Time utility functions for chain data."""

import time
from datetime import datetime, timezone
from typing import Optional, Union


def to_utc_timestamp(timestamp: Union[int, float, datetime]) -> datetime:
    """Convert various timestamp formats to UTC datetime."""
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            return timestamp.replace(tzinfo=timezone.utc)
        return timestamp.astimezone(timezone.utc)

    elif isinstance(timestamp, (int, float)):
        # Unix timestamp
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)

    else:
        raise ValueError(f"Unsupported timestamp type: {type(timestamp)}")


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


def seconds_to_ms(seconds: Optional[Union[int, float]], default: Optional[int] = None) -> int:
    """Convert a unix time in seconds to milliseconds, falling back to now."""
    if seconds is None or seconds <= 0:
        return default if default is not None else now_ms()
    return int(seconds * 1000)
