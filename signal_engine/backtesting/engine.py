"""
Backtest engine: bar-by-bar replay of one strategy, single open position,
fixed-lot PnL, exits on stop loss / take profit / RSI reversal.
Indicators for bar i only use bars <= i.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from signal_engine.analysis.indicators import indicator_frame, snapshot_at
from signal_engine.analytics.metrics import (
    average_win_loss,
    equity_drawdown_pct,
    profit_factor,
    sharpe_ratio,
    win_rate,
)
from signal_engine.core.errors import InsufficientDataError, InvalidBacktestRequestError
from signal_engine.core.types import Position, SignalSide, Trade
from signal_engine.data.base import PriceSeriesProvider, bars_to_frame, ensure_utc
from signal_engine.strategies.base import BaseStrategy
from signal_engine.strategies.rules import get_strategy

logger = logging.getLogger("signal_engine.backtest")

WARMUP_BARS = 20
MIN_BARS = 50
SUPPORTED_TIMEFRAMES = ("1h", "1d")

EXIT_STOP_LOSS = "Stop loss triggered"
EXIT_TAKE_PROFIT = "Take profit triggered"
EXIT_RSI_OVERBOUGHT = "RSI overbought exit"
EXIT_RSI_OVERSOLD = "RSI oversold exit"
EXIT_END_OF_PERIOD = "End of backtest period"


@dataclass(frozen=True)
class BacktestSettings:
    """Run parameters; any field can be overridden through the request's `parameters`."""
    initial_balance: float = 10000.0
    lot_size: float = 100000.0
    stop_loss_pct: float = 2.0
    take_profit_pct: float = 3.0
    oversold: float = 30.0
    overbought: float = 70.0

    @classmethod
    def from_parameters(cls, parameters: Optional[Mapping[str, Any]] = None) -> "BacktestSettings":
        params = dict(parameters or {})
        known = {k: float(params.pop(k)) for k in list(params) if k in cls.__dataclass_fields__}
        if params:
            logger.debug("Ignoring unknown backtest parameters: %s", sorted(params))
        return cls(**known)


@dataclass
class BacktestResult:
    """Backtest output: summary statistics, trades and equity curve."""
    strategy: str
    pair: str
    timeframe: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_return: float
    max_drawdown: float
    sharpe_ratio: float
    profit_factor: float
    average_win: float
    average_loss: float
    final_balance: float
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "pair": self.pair,
            "timeframe": self.timeframe,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "totalTrades": self.total_trades,
            "winningTrades": self.winning_trades,
            "losingTrades": self.losing_trades,
            "winRate": self.win_rate,
            "totalReturn": self.total_return,
            "maxDrawdown": self.max_drawdown,
            "sharpeRatio": self.sharpe_ratio,
            "profitFactor": self.profit_factor,
            "averageWin": self.average_win,
            "averageLoss": self.average_loss,
            "finalBalance": self.final_balance,
            "trades": [t.to_dict() for t in self.trades],
        }


@dataclass(frozen=True)
class BacktestRequest:
    """Caller-side backtest request; `validate` before handing it to the engine."""
    strategy: str
    pair: str
    timeframe: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    parameters: Dict[str, Any] = field(default_factory=dict)

    def validate(self, now: Optional[datetime] = None) -> "BacktestRequest":
        for name in ("strategy", "pair", "timeframe", "start_date", "end_date"):
            if not getattr(self, name):
                raise InvalidBacktestRequestError(f"Missing required field: {name}")
        if self.timeframe not in SUPPORTED_TIMEFRAMES:
            raise InvalidBacktestRequestError(
                f"Unsupported timeframe {self.timeframe!r}; expected one of {', '.join(SUPPORTED_TIMEFRAMES)}"
            )
        start, end = ensure_utc(self.start_date), ensure_utc(self.end_date)
        if start >= end:
            raise InvalidBacktestRequestError("start_date must be before end_date")
        now = ensure_utc(now or datetime.now(timezone.utc))
        if end > now:
            raise InvalidBacktestRequestError("end_date cannot be in the future")
        return self


def position_pnl(direction: SignalSide, entry_price: float, exit_price: float, lot_size: float) -> float:
    if direction == SignalSide.BUY:
        return (exit_price - entry_price) * lot_size
    return (entry_price - exit_price) * lot_size


def notional_pct(pnl: float, entry_price: float, lot_size: float) -> float:
    """PnL as percent of the position notional (entry price x lot size)."""
    notional = entry_price * lot_size
    if notional == 0:
        return 0.0
    return pnl / notional * 100.0


def exit_reason(position: Position, price: float, rsi: float, settings: BacktestSettings) -> Optional[str]:
    """First matching exit condition, in priority order, or None to hold."""
    pnl = position_pnl(position.direction, position.entry_price, price, settings.lot_size)
    move = abs(notional_pct(pnl, position.entry_price, settings.lot_size))
    if pnl < 0 and move > settings.stop_loss_pct:
        return EXIT_STOP_LOSS
    if pnl > 0 and move > settings.take_profit_pct:
        return EXIT_TAKE_PROFIT
    if position.direction == SignalSide.BUY and rsi > settings.overbought:
        return EXIT_RSI_OVERBOUGHT
    if position.direction == SignalSide.SELL and rsi < settings.oversold:
        return EXIT_RSI_OVERSOLD
    return None


class BacktestEngine:
    """
    Replays a strategy over historical bars.
    `run` works on an OHLCV DataFrame; `run_backtest` fetches the window from the provider first.
    """

    def __init__(
        self,
        provider: Optional[PriceSeriesProvider] = None,
        min_bars: int = MIN_BARS,
        warmup_bars: int = WARMUP_BARS,
    ):
        self.provider = provider
        self.min_bars = min_bars
        self.warmup_bars = warmup_bars

    def run_backtest(
        self,
        strategy_id: str,
        pair: str,
        timeframe: str,
        start_date: datetime,
        end_date: datetime,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> BacktestResult:
        """Fetch [start_date, end_date] bars for pair and replay strategy_id over them."""
        strategy = get_strategy(strategy_id, parameters)
        if self.provider is None:
            raise ValueError("BacktestEngine needs a price provider for run_backtest")
        start_date, end_date = ensure_utc(start_date), ensure_utc(end_date)
        bars = self.provider.historical_range(pair, timeframe, start_date, end_date)
        logger.info("Backtest %s on %s %s: %d bars", strategy_id, pair, timeframe, len(bars))
        return self.run(
            bars_to_frame(bars),
            strategy,
            pair=pair,
            timeframe=timeframe,
            start_date=start_date,
            end_date=end_date,
            parameters=parameters,
        )

    def run(
        self,
        df: pd.DataFrame,
        strategy: Union[BaseStrategy, str],
        pair: str = "EURUSD",
        timeframe: str = "1h",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> BacktestResult:
        """
        Run on OHLCV DataFrame (columns: time, open, high, low, close, volume).
        Entries and exits fill at the bar close; a bar never both closes and opens a position.
        """
        if isinstance(strategy, str):
            strategy = get_strategy(strategy, parameters)
        settings = BacktestSettings.from_parameters(parameters)
        if len(df) < self.min_bars:
            raise InsufficientDataError(
                f"Insufficient historical data for backtesting: {len(df)} bars < {self.min_bars}",
                available=len(df),
                required=self.min_bars,
            )

        frame = indicator_frame(df)
        times = [ts.to_pydatetime() for ts in pd.to_datetime(frame["time"], utc=True)]
        closes = frame["close"].to_numpy(dtype=float)

        balance = settings.initial_balance
        equity_curve = [balance]
        trades: List[Trade] = []
        position: Optional[Position] = None

        for i in range(self.warmup_bars, len(frame)):
            price = float(closes[i])
            snap = snapshot_at(frame, i)
            if position is None:
                side = strategy.get_signal(snap, price)
                if side is not None:
                    position = Position(
                        id=f"bt_{len(trades) + 1:04d}",
                        entry_date=times[i],
                        direction=side,
                        entry_price=price,
                    )
                    logger.debug("Open %s @ %.5f (bar %d)", side.value, price, i)
            else:
                reason = exit_reason(position, price, snap.rsi, settings)
                if reason is not None:
                    trade = self._close(position, times[i], price, reason, settings)
                    balance += trade.pnl
                    trades.append(trade)
                    position = None
            equity_curve.append(balance)

        if position is not None:
            trade = self._close(position, times[-1], float(closes[-1]), EXIT_END_OF_PERIOD, settings)
            balance += trade.pnl
            trades.append(trade)
            equity_curve.append(balance)

        return self._result(strategy, pair, timeframe, start_date, end_date, settings, balance, trades, equity_curve)

    @staticmethod
    def _close(
        position: Position,
        exit_date: datetime,
        exit_price: float,
        reason: str,
        settings: BacktestSettings,
    ) -> Trade:
        pnl = position_pnl(position.direction, position.entry_price, exit_price, settings.lot_size)
        logger.debug("Close %s %s @ %.5f: %s (pnl %.2f)", position.id, position.direction.value, exit_price, reason, pnl)
        return Trade(
            id=position.id,
            entry_date=position.entry_date,
            exit_date=exit_date,
            direction=position.direction,
            entry_price=position.entry_price,
            exit_price=exit_price,
            pnl=pnl,
            pnl_pct=notional_pct(pnl, position.entry_price, settings.lot_size),
            reason=reason,
        )

    @staticmethod
    def _result(
        strategy: BaseStrategy,
        pair: str,
        timeframe: str,
        start_date: Optional[datetime],
        end_date: Optional[datetime],
        settings: BacktestSettings,
        balance: float,
        trades: List[Trade],
        equity_curve: List[float],
    ) -> BacktestResult:
        pnls = [t.pnl for t in trades]
        winning = sum(1 for p in pnls if p > 0)
        losing = sum(1 for p in pnls if p < 0)
        avg_win, avg_loss = average_win_loss(pnls)
        initial = settings.initial_balance
        total_return = (balance - initial) / initial * 100.0 if initial else 0.0
        return BacktestResult(
            strategy=strategy.strategy_id,
            pair=pair,
            timeframe=timeframe,
            start_date=start_date,
            end_date=end_date,
            total_trades=len(trades),
            winning_trades=winning,
            losing_trades=losing,
            win_rate=win_rate(winning, len(trades)),
            total_return=total_return,
            max_drawdown=equity_drawdown_pct(equity_curve),
            sharpe_ratio=sharpe_ratio([t.pnl_pct for t in trades]),
            profit_factor=profit_factor(avg_win, avg_loss),
            average_win=avg_win,
            average_loss=avg_loss,
            final_balance=balance,
            trades=trades,
            equity_curve=equity_curve,
        )
