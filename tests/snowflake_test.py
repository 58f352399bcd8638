"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from datetime import datetime, timezone

import pytest

import constants as const
from snowflake import snowflake_from_timestamp, snowflake_gt, snowflake_int, snowflake_to_datetime


class TestSnowflakeOrdering:
    def test_compares_as_integers_not_strings(self):
        assert snowflake_gt("10", "9")
        assert not snowflake_gt("9", "10")

    def test_precision_beyond_float(self):
        # These differ only below float64 precision
        a = "1412345678901234567"
        b = "1412345678901234566"
        assert float(a) == float(b)
        assert snowflake_gt(a, b)
        assert not snowflake_gt(b, a)

    def test_equal_is_not_newer(self):
        assert not snowflake_gt("1412345678901234567", "1412345678901234567")

    def test_missing_current_accepts_anything(self):
        assert snowflake_gt("1", None)
        assert snowflake_gt("1", "")

    def test_int_and_whitespace_input(self):
        assert snowflake_int(" 42 ") == 42
        assert snowflake_int(42) == 42

    def test_non_numeric_raises(self):
        with pytest.raises(ValueError):
            snowflake_int("abc")


class TestSnowflakeTimestamps:
    def test_discord_epoch_is_zero(self):
        epoch = datetime.fromtimestamp(const.DISCORD_EPOCH_MS / 1000, tz=timezone.utc)
        assert snowflake_from_timestamp(epoch) == "0"

    def test_before_epoch_clamps_to_zero(self):
        assert snowflake_from_timestamp(datetime(2010, 1, 1, tzinfo=timezone.utc)) == "0"

    def test_accepts_epoch_milliseconds(self):
        ms = const.DISCORD_EPOCH_MS + 1000
        assert snowflake_from_timestamp(ms) == str(1000 << 22)

    def test_naive_datetime_is_utc(self):
        naive = datetime(2025, 9, 1, 12, 0)
        aware = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)
        assert snowflake_from_timestamp(naive) == snowflake_from_timestamp(aware)

    def test_round_trip_to_millisecond(self):
        when = datetime(2025, 9, 1, 12, 30, 15, 123000, tzinfo=timezone.utc)
        assert snowflake_to_datetime(snowflake_from_timestamp(when)) == when

    def test_later_instant_gives_larger_id(self):
        early = snowflake_from_timestamp(datetime(2025, 9, 1, tzinfo=timezone.utc))
        late = snowflake_from_timestamp(datetime(2025, 9, 2, tzinfo=timezone.utc))
        assert snowflake_gt(late, early)
