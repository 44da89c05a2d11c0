"""
Provider chain: each call goes to the providers in order and the first one that
answers wins. Quotes are cached per symbol for `quote_ttl_s` seconds.
"""

from __future__ import annotations
import logging
import threading
import time
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from signal_engine.core.errors import ProviderUnavailableError
from signal_engine.core.types import PriceBar, Quote
from signal_engine.data.base import PriceSeriesProvider

logger = logging.getLogger("signal_engine.data.fallback")

QUOTE_TTL_S = 30.0


class FallbackPriceProvider(PriceSeriesProvider):
    name = "fallback"

    def __init__(
        self,
        providers: Sequence[PriceSeriesProvider],
        quote_ttl_s: float = QUOTE_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not providers:
            raise ValueError("FallbackPriceProvider needs at least one provider")
        self.providers = list(providers)
        self.quote_ttl_s = quote_ttl_s
        self._clock = clock
        self._quotes: Dict[str, Tuple[float, Quote]] = {}
        self._errors: Dict[int, Optional[str]] = {}
        self._lock = threading.Lock()

    def _call(self, symbol: str, what: str, fn: Callable[[PriceSeriesProvider], object]):
        last_error: Optional[ProviderUnavailableError] = None
        for index, provider in enumerate(self.providers):
            try:
                result = fn(provider)
            except ProviderUnavailableError as e:
                last_error = e
                with self._lock:
                    self._errors[index] = str(e)
                logger.warning("%s %s via %s failed, trying next provider: %s", symbol, what, provider.name, e)
                continue
            with self._lock:
                self._errors[index] = None
            if index > 0:
                logger.info("%s %s served by fallback provider %s", symbol, what, provider.name)
            return result
        raise ProviderUnavailableError(
            f"All providers failed for {symbol} {what}: {last_error}",
            symbol=symbol,
        ) from last_error

    def current_price(self, symbol: str) -> Quote:
        now = self._clock()
        with self._lock:
            cached = self._quotes.get(symbol)
        if cached is not None and now - cached[0] < self.quote_ttl_s:
            return cached[1]
        quote = self._call(symbol, "quote", lambda p: p.current_price(symbol))
        with self._lock:
            self._quotes[symbol] = (now, quote)
        return quote

    def current_prices(self, symbols: Iterable[str]) -> Dict[str, Quote]:
        """Quotes for every symbol some provider could price; the rest are left out."""
        out: Dict[str, Quote] = {}
        for symbol in symbols:
            try:
                out[symbol] = self.current_price(symbol)
            except ProviderUnavailableError as e:
                logger.warning("No quote for %s: %s", symbol, e)
        return out

    def historical_bars(self, symbol: str, timeframe: str, count: int) -> List[PriceBar]:
        return self._call(symbol, "bars", lambda p: p.historical_bars(symbol, timeframe, count))

    def historical_range(
        self,
        symbol: str,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[PriceBar]:
        return self._call(symbol, "range", lambda p: p.historical_range(symbol, timeframe, start, end))

    def clear_cache(self) -> None:
        with self._lock:
            self._quotes.clear()

    def provider_status(self) -> List[Dict[str, object]]:
        """Per provider, in chain order: name and whether its last call succeeded."""
        with self._lock:
            return [
                {
                    "name": p.name,
                    "available": self._errors.get(i) is None,
                    "last_error": self._errors.get(i),
                }
                for i, p in enumerate(self.providers)
            ]
