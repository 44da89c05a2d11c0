"""Core: config, types, errors, logging."""

from signal_engine.core.config import load_config, Config
from signal_engine.core.errors import (
    SignalEngineError,
    InsufficientDataError,
    ProviderUnavailableError,
    InvalidStrategyError,
    InvalidBacktestRequestError,
)
from signal_engine.core.types import (
    SignalSide,
    SignalStatus,
    PriceBar,
    Quote,
    Signal,
    Position,
    Trade,
)
from signal_engine.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "SignalEngineError",
    "InsufficientDataError",
    "ProviderUnavailableError",
    "InvalidStrategyError",
    "InvalidBacktestRequestError",
    "SignalSide",
    "SignalStatus",
    "PriceBar",
    "Quote",
    "Signal",
    "Position",
    "Trade",
    "setup_logging",
]
