"""Analytics: performance metrics (win rate, drawdown, Sharpe, profit factor)."""

from signal_engine.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    sharpe_ratio,
    max_drawdown,
    equity_drawdown_pct,
    win_rate,
    average_win_loss,
    profit_factor,
)

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "sharpe_ratio",
    "max_drawdown",
    "equity_drawdown_pct",
    "win_rate",
    "average_win_loss",
    "profit_factor",
]
