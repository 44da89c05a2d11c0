"""Abstract backtest strategy: an entry rule over one bar's indicators."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from signal_engine.analysis.indicators import IndicatorSnapshot
from signal_engine.core.types import SignalSide


class BaseStrategy(ABC):
    """
    Deterministic entry rule. Sees only the current bar's close and indicators
    (computed from bars up to and including it).
    """

    strategy_id: str = ""
    name: str = ""
    description: str = ""

    def __init__(self, oversold: float = 30.0, overbought: float = 70.0):
        self.oversold = oversold
        self.overbought = overbought

    @classmethod
    def from_parameters(cls, parameters: Optional[Mapping[str, Any]] = None) -> "BaseStrategy":
        params = parameters or {}
        return cls(
            oversold=float(params.get("oversold", 30.0)),
            overbought=float(params.get("overbought", 70.0)),
        )

    @abstractmethod
    def get_signal(self, indicators: IndicatorSnapshot, price: float) -> Optional[SignalSide]:
        """Return the side to open, or None to stay flat."""
        pass

    def describe(self) -> dict:
        return {"id": self.strategy_id, "name": self.name, "description": self.description}
