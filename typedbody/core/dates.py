"""Apple timestamp conversion."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

# Newer databases store nanoseconds; anything this large cannot be seconds
NANOSECOND_THRESHOLD = 10 ** 11


def apple_time_to_datetime(value: Optional[Union[int, float]]) -> Optional[datetime]:
    """
    Convert a timestamp counted from 2001-01-01 UTC.

    Args:
        value: Seconds or nanoseconds since the Apple epoch; 0 or None means unset

    Returns:
        Aware UTC datetime, or None
    """
    if not value:
        return None
    seconds = value / 1_000_000_000 if abs(value) >= NANOSECOND_THRESHOLD else value
    return APPLE_EPOCH + timedelta(seconds=seconds)
