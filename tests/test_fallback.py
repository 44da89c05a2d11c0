"""Unit tests for the fallback provider chain and quote cache."""

from datetime import datetime, timedelta, timezone

import pytest
from signal_engine.core.errors import ProviderUnavailableError
from signal_engine.core.types import PriceBar
from signal_engine.data.fallback import FallbackPriceProvider
from signal_engine.data.memory import InMemoryPriceProvider

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _bars(closes):
    return [PriceBar(START + timedelta(hours=i), c, c, c, c, 10) for i, c in enumerate(closes)]


class CountingProvider(InMemoryPriceProvider):
    def __init__(self, bars_by_symbol, name):
        super().__init__(bars_by_symbol)
        self.name = name
        self.quote_calls = 0

    def current_price(self, symbol):
        self.quote_calls += 1
        return super().current_price(symbol)


class FakeClock:
    def __init__(self):
        self.t = 1000.0

    def __call__(self):
        return self.t


def _chain(clock=None):
    primary = CountingProvider({"EURUSD": _bars([1.1, 1.2])}, "primary")
    backup = CountingProvider({"EURUSD": _bars([9.0]), "GBPUSD": _bars([1.3, 1.4])}, "backup")
    return primary, backup, FallbackPriceProvider([primary, backup], clock=clock or FakeClock())


def test_first_provider_wins():
    primary, backup, chain = _chain()
    assert chain.current_price("EURUSD").price == 1.2
    assert backup.quote_calls == 0


def test_falls_through_to_next_provider():
    primary, backup, chain = _chain()
    assert chain.current_price("GBPUSD").price == 1.4
    assert [b.close for b in chain.historical_bars("GBPUSD", "1h", 5)] == [1.3, 1.4]
    window = chain.historical_range("GBPUSD", "1h", START, START + timedelta(hours=1))
    assert len(window) == 2


def test_all_providers_failing_raises():
    _, _, chain = _chain()
    with pytest.raises(ProviderUnavailableError) as exc:
        chain.current_price("XAUUSD")
    assert exc.value.symbol == "XAUUSD"


def test_quotes_cached_until_ttl():
    clock = FakeClock()
    primary, _, chain = _chain(clock)
    chain.current_price("EURUSD")
    clock.t += 29.0
    chain.current_price("EURUSD")
    assert primary.quote_calls == 1
    clock.t += 2.0
    chain.current_price("EURUSD")
    assert primary.quote_calls == 2


def test_clear_cache_forces_refetch():
    primary, _, chain = _chain()
    chain.current_price("EURUSD")
    chain.clear_cache()
    chain.current_price("EURUSD")
    assert primary.quote_calls == 2


def test_current_prices_skips_failures():
    _, _, chain = _chain()
    quotes = chain.current_prices(["EURUSD", "XAUUSD", "GBPUSD"])
    assert {s: q.price for s, q in quotes.items()} == {"EURUSD": 1.2, "GBPUSD": 1.4}


def test_provider_status_reports_last_failure():
    _, _, chain = _chain()
    assert [s["available"] for s in chain.provider_status()] == [True, True]
    chain.current_price("GBPUSD")
    status = chain.provider_status()
    assert [s["name"] for s in status] == ["primary", "backup"]
    assert status[0]["available"] is False
    assert "GBPUSD" in status[0]["last_error"]
    assert status[1]["available"] is True


def test_empty_chain_rejected():
    with pytest.raises(ValueError):
        FallbackPriceProvider([])
