"""Unit tests for utils.timeframes."""

from datetime import datetime, timedelta, timezone

import pytest
from signal_engine.utils.timeframes import bars_between, timeframe_delta, timeframe_minutes


def test_timeframe_minutes():
    assert timeframe_minutes("5m") == 5
    assert timeframe_minutes("1h") == 60
    assert timeframe_minutes("1d") == 1440


def test_timeframe_invalid():
    with pytest.raises(ValueError):
        timeframe_minutes("1x")


def test_timeframe_delta():
    assert timeframe_delta("4h") == timedelta(hours=4)


def test_bars_between_inclusive():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert bars_between(start, start, "1h") == 1
    assert bars_between(start, start + timedelta(hours=23), "1h") == 24
    assert bars_between(start, start + timedelta(days=9, hours=5), "1d") == 10


def test_bars_between_reversed_window():
    start = datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert bars_between(start, start - timedelta(hours=1), "1h") == 0
