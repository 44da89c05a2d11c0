"""Unit tests for the price series providers."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from binance.exceptions import BinanceAPIException, BinanceRequestException
from signal_engine.core.errors import ProviderUnavailableError
from signal_engine.core.types import PriceBar
from signal_engine.data.base import bars_to_frame, frame_to_bars
from signal_engine.data.binance import BinancePriceProvider, to_binance_symbol
from signal_engine.analysis.scanner import SignalScanner
from signal_engine.data.memory import InMemoryPriceProvider
from signal_engine.data.synthetic import SyntheticPriceProvider

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _clock():
    return datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


def test_synthetic_deterministic():
    a = SyntheticPriceProvider(seed=42, clock=_clock)
    b = SyntheticPriceProvider(seed=42, clock=_clock)
    end = START + timedelta(days=2)
    assert a.historical_range("EURUSD", "1h", START, end) == b.historical_range("EURUSD", "1h", START, end)
    assert a.current_price("EURUSD") == b.current_price("EURUSD")


def test_synthetic_seed_and_symbol_matter():
    end = START + timedelta(days=2)
    a = SyntheticPriceProvider(seed=1).historical_range("EURUSD", "1h", START, end)
    b = SyntheticPriceProvider(seed=2).historical_range("EURUSD", "1h", START, end)
    c = SyntheticPriceProvider(seed=1).historical_range("GBPUSD", "1h", START, end)
    assert [x.close for x in a] != [x.close for x in b]
    assert [x.close for x in a] != [x.close for x in c]


def test_synthetic_bars_valid_and_ordered():
    bars = SyntheticPriceProvider().historical_range("BTCUSD", "1h", START, START + timedelta(days=5))
    assert len(bars) == 5 * 24 + 1
    for prev, cur in zip(bars, bars[1:]):
        assert cur.timestamp - prev.timestamp == timedelta(hours=1)
    for bar in bars:
        assert bar.low <= min(bar.open, bar.close) <= max(bar.open, bar.close) <= bar.high
        assert bar.volume > 0


def test_synthetic_base_price_levels():
    bars = SyntheticPriceProvider().historical_range("USDJPY", "1d", START, START + timedelta(days=10))
    assert 100 < bars[0].close < 200


def test_synthetic_historical_bars_end_at_clock():
    provider = SyntheticPriceProvider(clock=_clock)
    bars = provider.historical_bars("EURUSD", "1h", 50)
    assert len(bars) == 50
    assert bars[-1].timestamp == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    assert provider.current_price("EURUSD").price == bars[-1].close


def test_price_bar_rejects_invalid_ohlc():
    with pytest.raises(ValueError):
        PriceBar(timestamp=START, open=1.0, high=0.9, low=0.8, close=0.85)


def test_unordered_bars_rejected():
    bars = [
        PriceBar(START + timedelta(hours=1), 1, 1, 1, 1),
        PriceBar(START, 1, 1, 1, 1),
    ]
    with pytest.raises(ValueError):
        InMemoryPriceProvider({"EURUSD": bars})


def test_memory_provider():
    bars = [PriceBar(START + timedelta(hours=i), 1 + i, 1 + i, 1 + i, 1 + i, 10) for i in range(30)]
    provider = InMemoryPriceProvider({"EURUSD": bars})
    assert provider.current_price("EURUSD").price == 30
    assert provider.historical_bars("EURUSD", "1h", 5) == bars[-5:]
    window = provider.historical_range("EURUSD", "1h", START + timedelta(hours=10), START + timedelta(hours=12))
    assert [b.close for b in window] == [11, 12, 13]
    with pytest.raises(ProviderUnavailableError):
        provider.current_price("GBPUSD")


def test_memory_provider_from_csv(tmp_path):
    bars = SyntheticPriceProvider().historical_range("EURUSD", "1h", START, START + timedelta(hours=9))
    path = tmp_path / "eurusd.csv"
    bars_to_frame(bars).to_csv(path, index=False)
    provider = InMemoryPriceProvider.from_csv(path, "EURUSD")
    loaded = provider.historical_bars("EURUSD", "1h", 100)
    assert len(loaded) == 10
    assert loaded[0].timestamp == START
    assert [b.close for b in loaded] == pytest.approx([b.close for b in bars])


def test_frame_round_trip_keeps_timestamps():
    bars = SyntheticPriceProvider().historical_range("EURUSD", "1d", START, START + timedelta(days=3))
    assert [b.timestamp for b in frame_to_bars(bars_to_frame(bars))] == [b.timestamp for b in bars]


def test_to_binance_symbol():
    assert to_binance_symbol("BTCUSD") == "BTCUSDT"
    assert to_binance_symbol("ethusdt") == "ETHUSDT"
    assert to_binance_symbol("SOL") == "SOLUSDT"


def _kline(ts: datetime, o, h, lo, c, v):
    ms = int(ts.timestamp() * 1000)
    return [ms, str(o), str(h), str(lo), str(c), str(v), ms + 3_599_999, "0", 0, "0", "0", "0"]


def test_binance_provider_parses_klines_and_ticker():
    client = MagicMock()
    client.get_ticker.return_value = {"lastPrice": "43250.5", "volume": "1234.5"}
    client.get_klines.return_value = [
        _kline(START, 100, 110, 95, 105, 7),
        _kline(START + timedelta(hours=1), 105, 106, 101, 102, 3),
    ]
    provider = BinancePriceProvider(client=client)
    quote = provider.current_price("BTCUSD")
    assert quote.symbol == "BTCUSD"
    assert quote.price == 43250.5
    client.get_ticker.assert_called_once_with(symbol="BTCUSDT")

    bars = provider.historical_bars("BTCUSD", "1h", 2)
    assert [b.close for b in bars] == [105.0, 102.0]
    assert bars[0].timestamp == START
    client.get_klines.assert_called_once_with(symbol="BTCUSDT", interval="1h", limit=2)


def test_binance_provider_wraps_errors(monkeypatch):
    monkeypatch.setattr("signal_engine.data.binance.time.sleep", lambda s: None)
    client = MagicMock()
    client.get_ticker.side_effect = BinanceAPIException(
        MagicMock(), 429, json.dumps({"code": -1003, "msg": "Too many requests"})
    )
    provider = BinancePriceProvider(client=client)
    with pytest.raises(ProviderUnavailableError) as exc:
        provider.current_price("ETHUSD")
    assert exc.value.kind == "provider_unavailable"
    assert exc.value.symbol == "ETHUSD"
    # rate limited: retried before giving up
    assert client.get_ticker.call_count == 3


def test_binance_request_error_is_wrapped():
    client = MagicMock()
    client.get_ticker.side_effect = BinanceRequestException("Invalid Response: <html>502 Bad Gateway</html>")
    client.get_klines.side_effect = BinanceRequestException("Invalid Response: <html>502 Bad Gateway</html>")
    provider = BinancePriceProvider(client=client)
    with pytest.raises(ProviderUnavailableError):
        provider.current_price("BTCUSD")
    with pytest.raises(ProviderUnavailableError):
        provider.historical_bars("BTCUSD", "1h", 50)
    assert SignalScanner(provider).fetch_market_data(["BTCUSD"]) == {}


def test_synthetic_quote_follows_quote_timeframe():
    hourly = SyntheticPriceProvider(clock=_clock)
    daily = SyntheticPriceProvider(quote_timeframe="1d", clock=_clock)
    assert daily.current_price("EURUSD").price == daily.historical_bars("EURUSD", "1d", 50)[-1].close
    assert daily.current_price("EURUSD").timestamp == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert hourly.current_price("EURUSD").timestamp == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
