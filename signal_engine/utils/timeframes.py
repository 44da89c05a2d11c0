"""Timeframe string to minutes / timedelta conversion."""

from __future__ import annotations
from datetime import datetime, timedelta


def timeframe_minutes(tf: str) -> int:
    """Convert a timeframe (e.g. '5m', '1h', '1d') to minutes."""
    tf = tf.strip().lower()
    if tf.endswith("m"):
        return int(tf[:-1])
    if tf.endswith("h"):
        return int(tf[:-1]) * 60
    if tf.endswith("d"):
        return int(tf[:-1]) * 60 * 24
    raise ValueError(f"Unsupported timeframe: {tf}")


def timeframe_delta(tf: str) -> timedelta:
    return timedelta(minutes=timeframe_minutes(tf))


def bars_between(start: datetime, end: datetime, tf: str) -> int:
    """Number of bar open times in [start, end] for this timeframe (0 if end < start)."""
    if end < start:
        return 0
    return int((end - start) // timeframe_delta(tf)) + 1
