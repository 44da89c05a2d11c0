"""Strategies: base interface, built-in rules, registry."""

from signal_engine.strategies.base import BaseStrategy
from signal_engine.strategies.rules import (
    RsiMeanReversionStrategy,
    MovingAverageCrossoverStrategy,
    TrendFollowingStrategy,
    STRATEGIES,
    get_strategy,
    available_strategies,
)

__all__ = [
    "BaseStrategy",
    "RsiMeanReversionStrategy",
    "MovingAverageCrossoverStrategy",
    "TrendFollowingStrategy",
    "STRATEGIES",
    "get_strategy",
    "available_strategies",
]
