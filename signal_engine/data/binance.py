"""
Binance public market data (spot klines + 24h ticker) with retry on rate limits.
Read-only: no orders are ever placed.
"""

from __future__ import annotations
import logging
import time
from datetime import datetime, timezone
from typing import Any, List, Optional

import requests
from binance.client import Client
from binance.exceptions import BinanceAPIException, BinanceRequestException

from signal_engine.core.errors import ProviderUnavailableError
from signal_engine.core.types import PriceBar, Quote
from signal_engine.data.base import PriceSeriesProvider, ensure_utc

logger = logging.getLogger("signal_engine.data.binance")

MAX_KLINES = 1000


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on 429 or 418 (rate limit)."""
    def decorator(f):
        def wrapped(*args, **kwargs):
            last_exc = None
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except BinanceAPIException as e:
                    last_exc = e
                    if e.status_code in (429, 418) and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
            raise last_exc
        return wrapped
    return decorator


def to_binance_symbol(symbol: str) -> str:
    """EURUSD -> EURUSDT, BTC -> BTCUSDT; USDT pairs pass through."""
    s = symbol.strip().upper()
    if s.endswith("USDT"):
        return s
    if s.endswith("USD"):
        return s + "T"
    return s + "USDT"


def _parse_klines(raw: List[List[Any]]) -> List[PriceBar]:
    return [
        PriceBar(
            timestamp=datetime.fromtimestamp(int(k[0]) / 1000, tz=timezone.utc),
            open=float(k[1]),
            high=float(k[2]),
            low=float(k[3]),
            close=float(k[4]),
            volume=float(k[5]),
        )
        for k in raw
    ]


class BinancePriceProvider(PriceSeriesProvider):
    """Keys are optional; public endpoints work without them."""

    name = "binance"

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        timeout_s: float = 10.0,
        client: Optional[Client] = None,
    ):
        self._api_key = api_key or None
        self._api_secret = api_secret or None
        self._timeout_s = timeout_s
        self._client = client

    @property
    def client(self) -> Client:
        # Created lazily: Client() talks to the exchange on construction.
        if self._client is None:
            self._client = Client(
                self._api_key,
                self._api_secret,
                requests_params={"timeout": self._timeout_s},
            )
        return self._client

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def _ticker(self, symbol: str) -> dict:
        return self.client.get_ticker(symbol=symbol)

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def _klines(self, symbol: str, interval: str, limit: int) -> list:
        return self.client.get_klines(symbol=symbol, interval=interval, limit=limit)

    @retry_on_rate_limit(max_retries=2, base_delay=1.0)
    def _klines_range(self, symbol: str, interval: str, start_ms: int, end_ms: int) -> list:
        return self.client.get_historical_klines(symbol, interval, start_str=start_ms, end_str=end_ms)

    def current_price(self, symbol: str) -> Quote:
        b_symbol = to_binance_symbol(symbol)
        try:
            ticker = self._ticker(b_symbol)
            return Quote(
                symbol=symbol,
                price=float(ticker["lastPrice"]),
                volume=float(ticker.get("volume", 0.0)),
                timestamp=datetime.now(timezone.utc),
            )
        except (BinanceAPIException, BinanceRequestException, requests.RequestException, KeyError, ValueError) as e:
            raise ProviderUnavailableError(f"Binance ticker failed for {b_symbol}: {e}", symbol=symbol) from e

    def historical_bars(self, symbol: str, timeframe: str, count: int) -> List[PriceBar]:
        if count <= 0:
            return []
        b_symbol = to_binance_symbol(symbol)
        try:
            raw = self._klines(b_symbol, timeframe, min(count, MAX_KLINES))
            return _parse_klines(raw)
        except (BinanceAPIException, BinanceRequestException, requests.RequestException, IndexError, ValueError) as e:
            raise ProviderUnavailableError(f"Binance klines failed for {b_symbol}: {e}", symbol=symbol) from e

    def historical_range(
        self,
        symbol: str,
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> List[PriceBar]:
        b_symbol = to_binance_symbol(symbol)
        start_ms = int(ensure_utc(start).timestamp() * 1000)
        end_ms = int(ensure_utc(end).timestamp() * 1000)
        try:
            raw = self._klines_range(b_symbol, timeframe, start_ms, end_ms)
            return _parse_klines(raw)
        except (BinanceAPIException, BinanceRequestException, requests.RequestException, IndexError, ValueError) as e:
            raise ProviderUnavailableError(f"Binance klines failed for {b_symbol}: {e}", symbol=symbol) from e
