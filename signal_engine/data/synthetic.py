"""
Deterministic synthetic price series: random walk per symbol plus a slow
monthly sine trend. Same seed + symbol + window -> same bars.
"""

from __future__ import annotations
import logging
import math
import zlib
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import numpy as np

from signal_engine.core.types import PriceBar, Quote
from signal_engine.data.base import PriceSeriesProvider, ensure_utc
from signal_engine.utils.timeframes import bars_between, timeframe_delta

logger = logging.getLogger("signal_engine.data.synthetic")

BASE_PRICES: Dict[str, float] = {
    "EURUSD": 1.085,
    "GBPUSD": 1.265,
    "USDJPY": 149.5,
    "GBPJPY": 189.25,
    "XAUUSD": 2025.5,
    "BTCUSD": 43250.0,
}

VOLATILITIES: Dict[str, float] = {
    "EURUSD": 0.008,
    "GBPUSD": 0.012,
    "USDJPY": 0.01,
    "GBPJPY": 0.015,
    "XAUUSD": 0.02,
    "BTCUSD": 0.04,
}

DEFAULT_BASE_PRICE = 1.0
DEFAULT_VOLATILITY = 0.01
TREND_PERIOD_MS = 86_400_000 * 30
TREND_AMPLITUDE = 0.001


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyntheticPriceProvider(PriceSeriesProvider):
    """Offline provider for demos, tests and backtests without a data feed."""

    name = "synthetic"

    def __init__(
        self,
        seed: int = 42,
        quote_timeframe: str = "1h",
        quote_lookback: int = 50,
        clock: Callable[[], datetime] = _utcnow,
        base_prices: Optional[Dict[str, float]] = None,
        volatilities: Optional[Dict[str, float]] = None,
    ):
        self.seed = seed
        self.quote_timeframe = quote_timeframe
        self.quote_lookback = quote_lookback
        self.clock = clock
        self.base_prices = dict(BASE_PRICES, **(base_prices or {}))
        self.volatilities = dict(VOLATILITIES, **(volatilities or {}))

    def _rng(self, symbol: str, start: datetime) -> np.random.Generator:
        return np.random.default_rng([self.seed, zlib.crc32(symbol.encode()), int(start.timestamp())])

    def _window_end(self, timeframe: str) -> datetime:
        step = timeframe_delta(timeframe).total_seconds()
        now = ensure_utc(self.clock()).timestamp()
        return datetime.fromtimestamp(math.floor(now / step) * step, tz=timezone.utc)

    def historical_range(
        self,
        symbol: str,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[PriceBar]:
        start, end = ensure_utc(start), ensure_utc(end)
        n = bars_between(start, end, timeframe)
        step = timeframe_delta(timeframe)
        vol = self.volatilities.get(symbol, DEFAULT_VOLATILITY)
        price = self.base_prices.get(symbol, DEFAULT_BASE_PRICE)
        rng = self._rng(symbol, start)
        bars: List[PriceBar] = []
        for k in range(n):
            ts = start + step * k
            change = (rng.random() - 0.5) * vol * 2
            trend = math.sin(ts.timestamp() * 1000 / TREND_PERIOD_MS) * TREND_AMPLITUDE
            price *= 1 + change + trend
            high = price * (1 + rng.random() * vol)
            low = price * (1 - rng.random() * vol)
            open_ = bars[-1].close if bars else price
            bars.append(PriceBar(
                timestamp=ts,
                open=open_,
                high=max(open_, price, high),
                low=min(open_, price, low),
                close=price,
                volume=float(rng.integers(100_000, 1_100_000)),
            ))
        logger.debug("Generated %d %s bars for %s", len(bars), timeframe, symbol)
        return bars

    def historical_bars(self, symbol: str, timeframe: str, count: int) -> List[PriceBar]:
        if count <= 0:
            return []
        end = self._window_end(timeframe)
        start = end - timeframe_delta(timeframe) * (count - 1)
        return self.historical_range(symbol, timeframe, start, end)

    def current_price(self, symbol: str) -> Quote:
        """Close of the latest bar of the quote window, so quotes agree with history."""
        last = self.historical_bars(symbol, self.quote_timeframe, self.quote_lookback)[-1]
        return Quote(symbol=symbol, price=last.close, volume=last.volume, timestamp=last.timestamp)
