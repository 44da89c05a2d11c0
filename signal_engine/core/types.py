"""
Core data types for bars, quotes, signals, positions, and trades.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from signal_engine.utils.precision import round_price


class SignalSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "SignalSide":
        return SignalSide.SELL if self is SignalSide.BUY else SignalSide.BUY


class SignalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    HIT_TP = "HIT_TP"
    HIT_SL = "HIT_SL"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not SignalStatus.ACTIVE


@dataclass(frozen=True)
class PriceBar:
    """OHLCV candle. Rejects bars whose high/low do not contain open and close."""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        body_low = min(self.open, self.close)
        body_high = max(self.open, self.close)
        if not (self.low <= body_low and body_high <= self.high):
            raise ValueError(
                f"Invalid bar at {self.timestamp}: low={self.low} open={self.open} "
                f"close={self.close} high={self.high}"
            )


def ensure_ordered(bars: Iterable[PriceBar]) -> List[PriceBar]:
    """Return bars as a list; raise ValueError unless strictly ascending by timestamp."""
    out = list(bars)
    for prev, cur in zip(out, out[1:]):
        if cur.timestamp <= prev.timestamp:
            raise ValueError(f"Bars not strictly ascending: {prev.timestamp} -> {cur.timestamp}")
    return out


@dataclass(frozen=True)
class Quote:
    """Latest price for a symbol."""
    symbol: str
    price: float
    volume: float
    timestamp: datetime


@dataclass
class Signal:
    """
    Directional trading signal with entry, stop, and target.
    Created by the analysis engine; status fields are only written by SignalTracker.
    """
    id: str
    pair: str
    direction: SignalSide
    entry_price: float
    stop_loss: float
    take_profit: float
    confidence: float
    analysis: str
    timeframe: str
    created_at: datetime
    risk_reward: float
    status: SignalStatus = SignalStatus.ACTIVE
    expires_at: Optional[datetime] = None
    exit_price: Optional[float] = None
    pnl_pct: Optional[float] = None
    closed_at: Optional[datetime] = None
    indicators: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pair": self.pair,
            "direction": self.direction.value,
            "entryPrice": round_price(self.pair, self.entry_price),
            "stopLoss": round_price(self.pair, self.stop_loss),
            "takeProfit": round_price(self.pair, self.take_profit),
            "confidence": self.confidence,
            "analysis": self.analysis,
            "timeframe": self.timeframe,
            "createdAt": self.created_at.isoformat(),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "riskReward": round(self.risk_reward, 1),
            "status": self.status.value,
            "exitPrice": round_price(self.pair, self.exit_price) if self.exit_price is not None else None,
            "pnlPercent": self.pnl_pct,
            "closedAt": self.closed_at.isoformat() if self.closed_at else None,
        }


@dataclass(frozen=True)
class Position:
    """Open backtest position. One per run at most."""
    id: str
    entry_date: datetime
    direction: SignalSide
    entry_price: float


@dataclass(frozen=True)
class Trade:
    """Closed position record."""
    id: str
    entry_date: datetime
    exit_date: datetime
    direction: SignalSide
    entry_price: float
    exit_price: float
    pnl: float
    pnl_pct: float
    reason: str  # "Stop loss triggered" | "Take profit triggered" | "RSI ... exit" | "End of backtest period"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entryDate": self.entry_date.isoformat(),
            "exitDate": self.exit_date.isoformat(),
            "direction": self.direction.value,
            "entryPrice": self.entry_price,
            "exitPrice": self.exit_price,
            "pnl": self.pnl,
            "pnlPercent": self.pnl_pct,
            "reason": self.reason,
        }
