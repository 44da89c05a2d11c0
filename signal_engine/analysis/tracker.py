"""
Live signal lifecycle: ACTIVE -> HIT_TP | HIT_SL | EXPIRED | CANCELLED.
Signals live in an injected SignalRepository; the tracker is the only writer of status fields.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Mapping, Optional

from signal_engine.analytics.metrics import PerformanceMetrics, compute_metrics
from signal_engine.core.types import Signal, SignalSide, SignalStatus

logger = logging.getLogger("signal_engine.tracker")

DEFAULT_EXPIRY = timedelta(hours=4)


class SignalRepository(ABC):
    """Storage for tracked signals."""

    @abstractmethod
    def add(self, signal: Signal) -> None:
        pass

    @abstractmethod
    def get(self, signal_id: str) -> Optional[Signal]:
        pass

    @abstractmethod
    def all(self) -> List[Signal]:
        pass

    def active(self) -> List[Signal]:
        return [s for s in self.all() if s.status == SignalStatus.ACTIVE]


class InMemorySignalRepository(SignalRepository):
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def add(self, signal: Signal) -> None:
        self._signals[signal.id] = signal

    def get(self, signal_id: str) -> Optional[Signal]:
        return self._signals.get(signal_id)

    def all(self) -> List[Signal]:
        return list(self._signals.values())


def move_pct(direction: SignalSide, entry: float, exit_price: float) -> float:
    """Percent price move in the signal's favour."""
    if entry == 0:
        return 0.0
    change = (exit_price - entry) / entry * 100.0
    return change if direction == SignalSide.BUY else -change


def price_outcome(signal: Signal, price: float) -> Optional[SignalStatus]:
    if signal.direction == SignalSide.BUY:
        if price <= signal.stop_loss:
            return SignalStatus.HIT_SL
        if price >= signal.take_profit:
            return SignalStatus.HIT_TP
    else:
        if price >= signal.stop_loss:
            return SignalStatus.HIT_SL
        if price <= signal.take_profit:
            return SignalStatus.HIT_TP
    return None


class SignalTracker:
    def __init__(self, repository: Optional[SignalRepository] = None, expiry: timedelta = DEFAULT_EXPIRY):
        self.repository = repository if repository is not None else InMemorySignalRepository()
        self.expiry = expiry

    def track(self, signal: Signal) -> Signal:
        if signal.expires_at is None:
            signal.expires_at = signal.created_at + self.expiry
        self.repository.add(signal)
        logger.info(
            "Tracking %s %s %s @ %.5f (conf %.0f)",
            signal.id, signal.pair, signal.direction.value, signal.entry_price, signal.confidence,
        )
        return signal

    def update(self, prices: Mapping[str, float], now: Optional[datetime] = None) -> List[Signal]:
        """
        Apply latest prices to ACTIVE signals. Returns the signals closed by this call.
        Expiry is checked after the price test and overrides it.
        """
        now = now or datetime.now(timezone.utc)
        closed: List[Signal] = []
        for signal in self.repository.active():
            price = prices.get(signal.pair)
            if price is None:
                continue
            status = price_outcome(signal, price)
            if now - signal.created_at > self.expiry:
                status = SignalStatus.EXPIRED
            if status is None:
                continue
            self._close(signal, status, price, now)
            closed.append(signal)
        return closed

    def cancel(self, signal_id: str, now: Optional[datetime] = None) -> Signal:
        signal = self.repository.get(signal_id)
        if signal is None:
            raise KeyError(signal_id)
        if signal.status != SignalStatus.ACTIVE:
            raise ValueError(f"Signal {signal_id} is {signal.status.value}, only ACTIVE signals can be cancelled")
        signal.status = SignalStatus.CANCELLED
        signal.closed_at = now or datetime.now(timezone.utc)
        logger.info("Cancelled %s", signal_id)
        return signal

    def active_signals(self) -> List[Signal]:
        return sorted(self.repository.active(), key=lambda s: s.created_at, reverse=True)

    def performance(self, days: int = 30, now: Optional[datetime] = None) -> PerformanceMetrics:
        """Metrics over signals created in the last `days` that closed on price or expiry."""
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=days)
        closed = [
            s for s in self.repository.all()
            if s.created_at >= since
            and s.status in (SignalStatus.HIT_TP, SignalStatus.HIT_SL, SignalStatus.EXPIRED)
        ]
        closed.sort(key=lambda s: s.closed_at or s.created_at)
        outcomes = [
            True if s.status == SignalStatus.HIT_TP else False if s.status == SignalStatus.HIT_SL else None
            for s in closed
        ]
        return compute_metrics([s.pnl_pct or 0.0 for s in closed], outcomes)

    @staticmethod
    def _close(signal: Signal, status: SignalStatus, price: float, now: datetime) -> None:
        signal.status = status
        signal.exit_price = price
        signal.pnl_pct = move_pct(signal.direction, signal.entry_price, price)
        signal.closed_at = now
        logger.info("%s %s %s at %.5f (%.2f%%)", signal.id, signal.pair, status.value, price, signal.pnl_pct)
