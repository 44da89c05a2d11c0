"""
Multi-symbol scan: fetch quotes and history for each pair, update tracked
signals, run the analysis engine, and keep the strongest new signals.
"""

from __future__ import annotations
import concurrent.futures
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from signal_engine.analysis.engine import SignalAnalysisEngine
from signal_engine.analysis.indicators import compute_snapshot
from signal_engine.analysis.tracker import SignalTracker
from signal_engine.core.errors import ProviderUnavailableError
from signal_engine.core.types import PriceBar, Quote, Signal
from signal_engine.data.base import PriceSeriesProvider

logger = logging.getLogger("signal_engine.scanner")


@dataclass(frozen=True)
class MarketData:
    quote: Quote
    bars: List[PriceBar]

    @property
    def closes(self) -> List[float]:
        return [b.close for b in self.bars]


class SignalScanner:
    """
    One scan() call is one pass over the configured pairs.
    Each pass fetches every pair on its own worker thread and waits for the whole
    batch against a single `timeout_s` deadline; pairs that fail or are still
    running at the deadline are skipped without holding up the others.
    """

    def __init__(
        self,
        provider: PriceSeriesProvider,
        engine: Optional[SignalAnalysisEngine] = None,
        tracker: Optional[SignalTracker] = None,
        timeframe: str = "1h",
        history_bars: int = 50,
        min_history_bars: int = 20,
        timeout_s: float = 10.0,
        max_signals: int = 6,
    ):
        self.provider = provider
        self.engine = engine or SignalAnalysisEngine(timeframe=timeframe)
        self.tracker = tracker or SignalTracker()
        self.timeframe = timeframe
        self.history_bars = history_bars
        self.min_history_bars = min_history_bars
        self.timeout_s = timeout_s
        self.max_signals = max_signals

    def _fetch(self, pair: str) -> MarketData:
        quote = self.provider.current_price(pair)
        bars = self.provider.historical_bars(pair, self.timeframe, self.history_bars)
        return MarketData(quote=quote, bars=bars)

    def fetch_market_data(self, pairs: Iterable[str]) -> Dict[str, MarketData]:
        """Market data per pair; pairs whose provider call failed or timed out are left out."""
        pairs = list(dict.fromkeys(pairs))
        if not pairs:
            return {}
        # One worker per pair: a hung call never keeps a healthy pair queued.
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=len(pairs),
            thread_name_prefix="ScanWorker",
        )
        try:
            futures = {pair: executor.submit(self._fetch, pair) for pair in pairs}
            concurrent.futures.wait(futures.values(), timeout=self.timeout_s)
        finally:
            executor.shutdown(wait=False)

        out: Dict[str, MarketData] = {}
        for pair, future in futures.items():
            if not future.done():
                logger.warning("%s: provider timed out after %.1fs, skipping", pair, self.timeout_s)
                continue
            try:
                out[pair] = future.result()
            except ProviderUnavailableError as e:
                logger.warning("%s: provider unavailable, skipping: %s", pair, e)
            except Exception as e:
                logger.warning("%s: provider error, skipping: %s: %s", pair, type(e).__name__, e)
        return out

    def scan(self, pairs: Iterable[str], now: Optional[datetime] = None) -> List[Signal]:
        """Run one pass. Returns new signals, highest confidence first, at most max_signals."""
        now = now or datetime.now(timezone.utc)
        data = self.fetch_market_data(pairs)

        closed = self.tracker.update({pair: md.quote.price for pair, md in data.items()}, now)
        if closed:
            logger.info("Closed %d tracked signal(s)", len(closed))

        candidates: List[Signal] = []
        for pair, md in data.items():
            if len(md.bars) < self.min_history_bars:
                logger.debug("%s: %d bars < %d, no signal", pair, len(md.bars), self.min_history_bars)
                continue
            signal = self.engine.analyze(
                pair,
                md.quote.price,
                compute_snapshot(md.closes),
                volume=md.quote.volume,
                now=now,
            )
            if signal is not None:
                candidates.append(signal)

        candidates.sort(key=lambda s: s.confidence, reverse=True)
        emitted = candidates[: self.max_signals]
        for signal in emitted:
            self.tracker.track(signal)
        logger.info("Scan of %d pair(s): %d signal(s)", len(data), len(emitted))
        return emitted
