"""
Performance metrics from a sequence of trade/signal outcomes: win rate, average
and total PnL, max drawdown, Sharpe ratio, profit factor.
Every function returns 0 for empty input instead of NaN.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Optional, Sequence

import numpy as np


@dataclass
class PerformanceMetrics:
    """Aggregate performance metrics."""
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_pnl: float
    avg_pnl: float
    max_drawdown: float
    sharpe_ratio: float
    profit_factor: float
    average_win: float
    average_loss: float

    @classmethod
    def empty(cls) -> "PerformanceMetrics":
        return cls(
            total_trades=0, winning_trades=0, losing_trades=0, win_rate=0.0,
            total_pnl=0.0, avg_pnl=0.0, max_drawdown=0.0, sharpe_ratio=0.0,
            profit_factor=0.0, average_win=0.0, average_loss=0.0,
        )

    def to_dict(self) -> dict:
        return asdict(self)


def sharpe_ratio(returns: Sequence[float]) -> float:
    """Mean / population std of per-trade returns. 0 if empty or std is 0."""
    if len(returns) == 0:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    std = arr.std()
    if std <= 1e-12:
        return 0.0
    return float(arr.mean() / std)


def max_drawdown(pnls: Sequence[float]) -> float:
    """Largest peak-to-trough fall of cumulative PnL (peak starts at 0). Same units as pnls."""
    if len(pnls) == 0:
        return 0.0
    cum = np.cumsum(np.asarray(pnls, dtype=float))
    peak = np.maximum.accumulate(np.maximum(cum, 0.0))
    return float(np.max(peak - cum))


def equity_drawdown_pct(equity_curve: Sequence[float]) -> float:
    """Max (peak - equity) / peak over an equity curve, in percent (positive)."""
    if len(equity_curve) == 0:
        return 0.0
    arr = np.asarray(equity_curve, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (peak - arr) / np.where(peak > 0, peak, 1.0)
    return float(np.max(dd)) * 100.0


def win_rate(wins: int, total: int) -> float:
    """Percentage of winners."""
    if total <= 0:
        return 0.0
    return wins / total * 100.0


def average_win_loss(pnls: Sequence[float]) -> tuple[float, float]:
    """(average win, average loss as positive magnitude); each divides by max(count, 1)."""
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    avg_win = sum(wins) / (len(wins) or 1)
    avg_loss = abs(sum(losses)) / (len(losses) or 1)
    return avg_win, avg_loss


def profit_factor(average_win: float, average_loss: float) -> float:
    """Average win / average loss; divisor falls back to 1 when there are no losses."""
    return average_win / (average_loss or 1.0)


def compute_metrics(
    pnls: Sequence[float],
    outcomes: Optional[Sequence[Optional[bool]]] = None,
) -> PerformanceMetrics:
    """
    Full metrics from per-trade PnL values (typically PnL %).
    outcomes: optional per-trade True (win) / False (loss) / None (neither, e.g.
    expired). Defaults to the sign of each PnL.
    """
    total = len(pnls)
    if total == 0:
        return PerformanceMetrics.empty()
    if outcomes is None:
        outcomes = [True if p > 0 else False if p < 0 else None for p in pnls]
    elif len(outcomes) != total:
        raise ValueError(f"outcomes length {len(outcomes)} != pnls length {total}")
    winning = sum(1 for o in outcomes if o is True)
    losing = sum(1 for o in outcomes if o is False)
    total_pnl = float(sum(pnls))
    avg_win, avg_loss = average_win_loss(pnls)
    return PerformanceMetrics(
        total_trades=total,
        winning_trades=winning,
        losing_trades=losing,
        win_rate=win_rate(winning, total),
        total_pnl=total_pnl,
        avg_pnl=total_pnl / total,
        max_drawdown=max_drawdown(pnls),
        sharpe_ratio=sharpe_ratio(pnls),
        profit_factor=profit_factor(avg_win, avg_loss),
        average_win=avg_win,
        average_loss=avg_loss,
    )
