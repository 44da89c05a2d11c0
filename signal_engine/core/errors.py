"""
Engine error taxonomy. Each error carries a `kind` so callers can map it
(e.g. insufficient_data / invalid_strategy / invalid_request -> 4xx).
"""

from __future__ import annotations


class SignalEngineError(Exception):
    kind = "internal"


class InsufficientDataError(SignalEngineError):
    """Not enough bars for a backtest. Indicators never raise this."""
    kind = "insufficient_data"

    def __init__(self, message: str, available: int = 0, required: int = 0):
        super().__init__(message)
        self.available = available
        self.required = required


class ProviderUnavailableError(SignalEngineError):
    """Price or history fetch failed (error, empty answer, or timeout)."""
    kind = "provider_unavailable"

    def __init__(self, message: str, symbol: str = ""):
        super().__init__(message)
        self.symbol = symbol


class InvalidStrategyError(SignalEngineError, ValueError):
    kind = "invalid_strategy"

    def __init__(self, strategy_id: str):
        super().__init__(f"Unknown strategy: {strategy_id!r}")
        self.strategy_id = strategy_id


class InvalidBacktestRequestError(SignalEngineError, ValueError):
    kind = "invalid_request"
