"""
Snowflake helpers

Discord message ids are 64-bit "snowflakes": the high 42 bits hold milliseconds
since the Discord epoch, the low 22 bits hold worker/process/sequence counters.
Ids travel as strings (JSON, REST); ordering must always be done on the integer
value, never on the string or a float.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from datetime import datetime, timezone

import constants as const


TIMESTAMP_SHIFT = 22


def snowflake_int(value: str | int) -> int:
    """Parse a snowflake into an int. Raises ValueError for non-numeric input."""
    if isinstance(value, int):
        return value
    return int(str(value).strip())


def snowflake_gt(candidate: str | int, current: str | int | None) -> bool:
    """
    True when candidate is strictly newer than current.

    A missing current id means nothing has been processed yet, so any candidate wins.
    """
    if current is None or current == "":
        return True
    return snowflake_int(candidate) > snowflake_int(current)


def snowflake_from_timestamp(value: datetime | int | float) -> str:
    """
    Build the smallest snowflake for an instant (worker, process and sequence bits zeroed).

    Accepts a datetime or epoch milliseconds. Instants before the Discord epoch clamp to 0.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        ms = int(value.timestamp() * 1000)
    else:
        ms = int(value)
    offset = max(0, ms - const.DISCORD_EPOCH_MS)
    return str(offset << TIMESTAMP_SHIFT)


def snowflake_to_datetime(value: str | int) -> datetime:
    """Creation time encoded in a snowflake (UTC)."""
    ms = (snowflake_int(value) >> TIMESTAMP_SHIFT) + const.DISCORD_EPOCH_MS
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
