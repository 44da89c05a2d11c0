"""In-memory provider serving preloaded bars (tests, CSV replays)."""

from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from signal_engine.core.errors import ProviderUnavailableError
from signal_engine.core.types import PriceBar, Quote, ensure_ordered
from signal_engine.data.base import PriceSeriesProvider, ensure_utc, frame_to_bars


class InMemoryPriceProvider(PriceSeriesProvider):
    """Bars are stored per symbol as given; the timeframe argument is not resampled."""

    name = "memory"

    def __init__(self, bars_by_symbol: Optional[Dict[str, Sequence[PriceBar]]] = None):
        self._bars: Dict[str, List[PriceBar]] = {}
        for symbol, bars in (bars_by_symbol or {}).items():
            self.add(symbol, bars)

    @classmethod
    def from_csv(cls, path: Path, symbol: str) -> "InMemoryPriceProvider":
        """CSV with columns time (or timestamp), open, high, low, close, volume."""
        df = pd.read_csv(path)
        return cls({symbol: frame_to_bars(df)})

    def add(self, symbol: str, bars: Sequence[PriceBar]) -> None:
        self._bars[symbol] = ensure_ordered(bars)

    def _series(self, symbol: str) -> List[PriceBar]:
        bars = self._bars.get(symbol)
        if not bars:
            raise ProviderUnavailableError(f"No bars loaded for {symbol}", symbol=symbol)
        return bars

    def current_price(self, symbol: str) -> Quote:
        last = self._series(symbol)[-1]
        return Quote(symbol=symbol, price=last.close, volume=last.volume, timestamp=last.timestamp)

    def historical_bars(self, symbol: str, timeframe: str, count: int) -> List[PriceBar]:
        if count <= 0:
            return []
        return list(self._series(symbol)[-count:])

    def historical_range(
        self,
        symbol: str,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[PriceBar]:
        start, end = ensure_utc(start), ensure_utc(end)
        return [b for b in self._series(symbol) if start <= ensure_utc(b.timestamp) <= end]
