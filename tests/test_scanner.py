"""Unit tests for analysis.scanner."""

import threading
import time
from datetime import datetime, timedelta, timezone

from signal_engine.analysis.scanner import SignalScanner
from signal_engine.analysis.tracker import SignalTracker
from signal_engine.core.types import PriceBar, Signal, SignalSide, SignalStatus
from signal_engine.data.memory import InMemoryPriceProvider

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _bars(closes, volume=1000.0):
    start = NOW - timedelta(hours=len(closes) - 1)
    return [
        PriceBar(timestamp=start + timedelta(hours=i), open=c, high=c, low=c, close=c, volume=volume)
        for i, c in enumerate(closes)
    ]


def _provider() -> InMemoryPriceProvider:
    return InMemoryPriceProvider({
        "EURUSD": _bars([1.2 - 0.002 * i for i in range(60)]),               # falling -> BUY 70
        "GBPUSD": _bars([1.2 + 0.002 * i for i in range(60)], volume=0.0),   # rising -> SELL 65
        "USDJPY": _bars([150.0 + 0.1 * i for i in range(10)]),               # too short
    })


class SlowProvider(InMemoryPriceProvider):
    """Symbols starting with SLOW block until `release` is set."""

    def __init__(self, bars_by_symbol, release: threading.Event):
        super().__init__(bars_by_symbol)
        self.release = release

    def current_price(self, symbol):
        if symbol.startswith("SLOW"):
            self.release.wait(5)
        return super().current_price(symbol)


class BrokenProvider(InMemoryPriceProvider):
    """BROKEN raises a plain connection error instead of ProviderUnavailableError."""

    def current_price(self, symbol):
        if symbol == "BROKEN":
            raise ConnectionError("socket reset")
        return super().current_price(symbol)


def test_scan_emits_sorted_and_tracks():
    scanner = SignalScanner(_provider(), timeout_s=5)
    signals = scanner.scan(["EURUSD", "GBPUSD", "USDJPY"], now=NOW)
    assert [s.pair for s in signals] == ["EURUSD", "GBPUSD"]
    assert signals[0].direction == SignalSide.BUY
    assert signals[0].confidence == 70
    assert signals[1].direction == SignalSide.SELL
    assert signals[1].confidence == 65
    tracked = {s.id for s in scanner.tracker.active_signals()}
    assert tracked == {s.id for s in signals}
    assert all(s.expires_at == NOW + timedelta(hours=4) for s in signals)


def test_scan_limits_to_max_signals():
    signals = SignalScanner(_provider(), max_signals=1).scan(["GBPUSD", "EURUSD"], now=NOW)
    assert [s.pair for s in signals] == ["EURUSD"]


def test_unavailable_symbol_is_skipped():
    signals = SignalScanner(_provider()).scan(["XAUUSD", "EURUSD"], now=NOW)
    assert [s.pair for s in signals] == ["EURUSD"]


def test_unexpected_provider_error_skips_only_that_symbol():
    provider = BrokenProvider({"BROKEN": _bars([1.0] * 60), "EURUSD": _provider()._series("EURUSD")})
    signals = SignalScanner(provider).scan(["BROKEN", "EURUSD"], now=NOW)
    assert [s.pair for s in signals] == ["EURUSD"]


def test_slow_symbol_times_out_without_blocking_others():
    release = threading.Event()
    provider = SlowProvider({"SLOW": _bars([1.0] * 60), "EURUSD": _provider()._series("EURUSD")}, release)
    try:
        data = SignalScanner(provider, timeout_s=0.2).fetch_market_data(["SLOW", "EURUSD"])
        assert list(data) == ["EURUSD"]
    finally:
        release.set()


def test_many_hung_symbols_do_not_starve_healthy_one():
    release = threading.Event()
    slow = {f"SLOW{i}": _bars([1.0] * 60) for i in range(4)}
    provider = SlowProvider({**slow, "EURUSD": _provider()._series("EURUSD")}, release)
    try:
        started = time.monotonic()
        data = SignalScanner(provider, timeout_s=0.3).fetch_market_data([*slow, "EURUSD"])
        elapsed = time.monotonic() - started
        assert list(data) == ["EURUSD"]
        # one deadline for the whole batch, not one per symbol
        assert elapsed < 1.5
    finally:
        release.set()


def test_short_history_gives_no_signal():
    assert SignalScanner(_provider()).scan(["USDJPY"], now=NOW) == []


def test_tracked_signals_updated_before_new_ones():
    tracker = SignalTracker()
    old = tracker.track(Signal(
        id="old",
        pair="EURUSD",
        direction=SignalSide.BUY,
        entry_price=1.15,
        stop_loss=1.13,
        take_profit=1.18,
        confidence=75,
        analysis="Technical analysis: RSI oversold",
        timeframe="1h",
        created_at=NOW - timedelta(hours=1),
        risk_reward=1.5,
    ))
    SignalScanner(_provider(), tracker=tracker).scan(["EURUSD"], now=NOW)
    assert old.status == SignalStatus.HIT_SL
    assert old.exit_price == 1.2 - 0.002 * 59
    assert len(tracker.active_signals()) == 1
