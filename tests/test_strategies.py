"""Unit tests for strategies."""

import pytest
from signal_engine.analysis.indicators import BollingerBands, IndicatorSnapshot, MacdValue
from signal_engine.core.errors import InvalidStrategyError
from signal_engine.core.types import SignalSide
from signal_engine.strategies import available_strategies, get_strategy


def _snap(rsi=50.0, sma20=1.10, sma50=1.10) -> IndicatorSnapshot:
    return IndicatorSnapshot(
        rsi=rsi,
        macd=MacdValue(0.0, 0.0, 0.0),
        ema20=sma20,
        sma20=sma20,
        sma50=sma50,
        bollinger=BollingerBands(1.11, 1.10, 1.09),
    )


def test_rsi_mean_reversion():
    s = get_strategy("rsi_mean_reversion")
    assert s.get_signal(_snap(rsi=25), 1.1) == SignalSide.BUY
    assert s.get_signal(_snap(rsi=75), 1.1) == SignalSide.SELL
    assert s.get_signal(_snap(rsi=50), 1.1) is None


def test_rsi_thresholds_from_parameters():
    s = get_strategy("rsi_mean_reversion", {"oversold": 40, "overbought": 60})
    assert s.get_signal(_snap(rsi=35), 1.1) == SignalSide.BUY
    assert s.get_signal(_snap(rsi=65), 1.1) == SignalSide.SELL


def test_moving_average_crossover():
    s = get_strategy("moving_average_crossover")
    assert s.get_signal(_snap(sma20=1.10, sma50=1.09), 1.11) == SignalSide.BUY
    assert s.get_signal(_snap(sma20=1.10, sma50=1.11), 1.09) == SignalSide.SELL
    assert s.get_signal(_snap(sma20=1.10, sma50=1.11), 1.12) is None


def test_trend_following():
    s = get_strategy("trend_following")
    assert s.get_signal(_snap(rsi=60, sma20=1.10), 1.11) == SignalSide.BUY
    assert s.get_signal(_snap(rsi=40, sma20=1.10), 1.09) == SignalSide.SELL
    assert s.get_signal(_snap(rsi=60, sma20=1.10), 1.09) is None


def test_unknown_strategy():
    with pytest.raises(InvalidStrategyError) as exc:
        get_strategy("martingale")
    assert exc.value.strategy_id == "martingale"
    assert exc.value.kind == "invalid_strategy"


def test_catalogue():
    ids = [s["id"] for s in available_strategies()]
    assert ids == ["rsi_mean_reversion", "moving_average_crossover", "trend_following"]
    assert all(s["name"] and s["description"] for s in available_strategies())
