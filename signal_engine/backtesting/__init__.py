"""Backtesting: strategy replay over historical bars."""

from signal_engine.backtesting.engine import (
    BacktestEngine,
    BacktestRequest,
    BacktestResult,
    BacktestSettings,
    SUPPORTED_TIMEFRAMES,
)

__all__ = [
    "BacktestEngine",
    "BacktestRequest",
    "BacktestResult",
    "BacktestSettings",
    "SUPPORTED_TIMEFRAMES",
]
