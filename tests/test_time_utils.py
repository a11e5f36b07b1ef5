"""
Tests for protobuf JSON duration and timestamp helpers.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from fleetsync.util.time_utils import (
    epoch_to_timestamp, format_duration, parse_duration_seconds, to_timestamp
)


@pytest.mark.parametrize("value,expected", [
    (None, 0),
    ("", 0),
    ("0s", 0),
    ("123s", 123),
    ("1.75s", 1),
    (" 30s ", 30),
    (45, 45),
])
def test_parse_duration_seconds(value, expected):
    assert parse_duration_seconds(value) == expected


def test_parse_duration_rejects_missing_unit():
    with pytest.raises(ValueError):
        parse_duration_seconds("123")


def test_format_duration():
    assert format_duration(0) == "0s"
    assert format_duration(123) == "123s"


def test_epoch_to_timestamp():
    assert epoch_to_timestamp(0) == "1970-01-01T00:00:00Z"
    assert epoch_to_timestamp(1005) == "1970-01-01T00:16:45Z"


def test_to_timestamp_treats_naive_datetimes_as_utc():
    assert to_timestamp(datetime(2024, 5, 1, 8, 30)) == "2024-05-01T08:30:00Z"


def test_to_timestamp_converts_offsets_to_utc():
    helsinki = timezone(timedelta(hours=3))
    assert to_timestamp(datetime(2024, 5, 1, 11, 30, tzinfo=helsinki)) == "2024-05-01T08:30:00Z"


def test_to_timestamp_date():
    assert to_timestamp(date(2024, 5, 1)) == "2024-05-01T00:00:00Z"
