"""Price series provider interface and bar <-> DataFrame helpers."""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, List

import pandas as pd

from signal_engine.core.types import PriceBar, Quote, ensure_ordered
from signal_engine.utils.timeframes import bars_between

BAR_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def bars_to_frame(bars: Iterable[PriceBar]) -> pd.DataFrame:
    """OHLCV DataFrame (columns: time, open, high, low, close, volume). Bars must be ascending."""
    ordered = ensure_ordered(bars)
    return pd.DataFrame(
        [(b.timestamp, b.open, b.high, b.low, b.close, b.volume) for b in ordered],
        columns=BAR_COLUMNS,
    )


def frame_to_bars(df: pd.DataFrame) -> List[PriceBar]:
    """Inverse of bars_to_frame. Accepts a 'time' or 'timestamp' column."""
    time_col = "time" if "time" in df.columns else "timestamp"
    times = pd.to_datetime(df[time_col], utc=True)
    bars = [
        PriceBar(
            timestamp=ts.to_pydatetime(),
            open=float(o),
            high=float(h),
            low=float(lo),
            close=float(c),
            volume=float(v),
        )
        for ts, o, h, lo, c, v in zip(times, df["open"], df["high"], df["low"], df["close"], df["volume"])
    ]
    return ensure_ordered(bars)


class PriceSeriesProvider(ABC):
    """Source of current prices and historical OHLCV bars. Calls may be slow I/O."""

    name = "base"

    @abstractmethod
    def current_price(self, symbol: str) -> Quote:
        """Latest price and volume for symbol. Raises ProviderUnavailableError on failure."""
        pass

    @abstractmethod
    def historical_bars(self, symbol: str, timeframe: str, count: int) -> List[PriceBar]:
        """Most recent `count` bars, ascending by time."""
        pass

    def historical_range(
        self,
        symbol: str,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[PriceBar]:
        """
        Bars with start <= timestamp <= end. Default: fetch as many recent bars as
        the window spans and keep those inside it; providers with a real range
        query should override.
        """
        start, end = ensure_utc(start), ensure_utc(end)
        count = bars_between(start, end, timeframe)
        if count <= 0:
            return []
        bars = self.historical_bars(symbol, timeframe, count)
        return [b for b in bars if start <= ensure_utc(b.timestamp) <= end]
