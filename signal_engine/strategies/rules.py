"""
Built-in backtest strategies and their registry.

  rsi_mean_reversion        BUY RSI < 30, SELL RSI > 70
  moving_average_crossover  BUY price > SMA20 > SMA50, SELL inverse
  trend_following           BUY RSI > 50 and price > SMA20, SELL RSI < 50 and price < SMA20
"""

from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Type

from signal_engine.analysis.indicators import IndicatorSnapshot
from signal_engine.core.errors import InvalidStrategyError
from signal_engine.core.types import SignalSide
from signal_engine.strategies.base import BaseStrategy


class RsiMeanReversionStrategy(BaseStrategy):
    strategy_id = "rsi_mean_reversion"
    name = "RSI Mean Reversion"
    description = "Buy when RSI < 30, sell when RSI > 70"

    def get_signal(self, indicators: IndicatorSnapshot, price: float) -> Optional[SignalSide]:
        if indicators.rsi < self.oversold:
            return SignalSide.BUY
        if indicators.rsi > self.overbought:
            return SignalSide.SELL
        return None


class MovingAverageCrossoverStrategy(BaseStrategy):
    strategy_id = "moving_average_crossover"
    name = "Moving Average Crossover"
    description = "Trade based on price vs moving average relationship"

    def get_signal(self, indicators: IndicatorSnapshot, price: float) -> Optional[SignalSide]:
        sma20, sma50 = indicators.sma20, indicators.sma50
        if price > sma20 and sma20 > sma50:
            return SignalSide.BUY
        if price < sma20 and sma20 < sma50:
            return SignalSide.SELL
        return None


class TrendFollowingStrategy(BaseStrategy):
    strategy_id = "trend_following"
    name = "Trend Following"
    description = "Follow trends using RSI and moving averages"

    def get_signal(self, indicators: IndicatorSnapshot, price: float) -> Optional[SignalSide]:
        if indicators.rsi > 50 and price > indicators.sma20:
            return SignalSide.BUY
        if indicators.rsi < 50 and price < indicators.sma20:
            return SignalSide.SELL
        return None


STRATEGIES: Dict[str, Type[BaseStrategy]] = {
    cls.strategy_id: cls
    for cls in (RsiMeanReversionStrategy, MovingAverageCrossoverStrategy, TrendFollowingStrategy)
}


def get_strategy(strategy_id: str, parameters: Optional[Mapping[str, Any]] = None) -> BaseStrategy:
    """Instantiate a strategy by id. Unknown ids raise InvalidStrategyError (no default)."""
    cls = STRATEGIES.get(strategy_id)
    if cls is None:
        raise InvalidStrategyError(strategy_id)
    return cls.from_parameters(parameters)


def available_strategies() -> List[dict]:
    return [cls().describe() for cls in STRATEGIES.values()]
