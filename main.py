#!/usr/bin/env python3
"""
Signal Engine CLI: backtest | scan | live | strategies
Usage:
  python main.py backtest [--strategy rsi_mean_reversion] [--pair EURUSD] [--timeframe 1h]
                          [--start 2024-01-01] [--end 2024-03-01] [--csv bars.csv] [--config config.yaml]
  python main.py scan [--config config.yaml]
  python main.py live [--config config.yaml]
  python main.py strategies
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from signal_engine.analysis.engine import SignalAnalysisEngine
from signal_engine.analysis.scanner import SignalScanner
from signal_engine.analysis.tracker import SignalTracker
from signal_engine.backtesting.engine import BacktestEngine, BacktestRequest, BacktestResult
from signal_engine.core.config import Config, load_config
from signal_engine.core.errors import SignalEngineError
from signal_engine.core.logger import setup_logging
from signal_engine.core.types import Signal
from signal_engine.data.base import PriceSeriesProvider
from signal_engine.data.fallback import FallbackPriceProvider
from signal_engine.data.memory import InMemoryPriceProvider
from signal_engine.data.synthetic import SyntheticPriceProvider
from signal_engine.strategies.rules import available_strategies
from signal_engine.utils.telegram import format_signal_message, send_telegram

logger = logging.getLogger("signal_engine")

EXIT_ERROR = 2

DEFAULT_LOOKBACK = {"1h": timedelta(days=30), "1d": timedelta(days=365)}


def make_provider(config: Config) -> PriceSeriesProvider:
    """
    Price provider selected by config.data_provider (synthetic | binance).
    Binance is chained with the synthetic series as fallback.
    """
    synthetic = SyntheticPriceProvider(seed=config.provider_seed, quote_timeframe=config.timeframe)
    if config.data_provider == "binance":
        from signal_engine.data.binance import BinancePriceProvider
        binance = BinancePriceProvider(
            config.binance_api_key,
            config.binance_api_secret,
            timeout_s=config.provider_timeout_s,
        )
        return FallbackPriceProvider([binance, synthetic])
    if config.data_provider != "synthetic":
        logger.warning("Unknown data provider %r, using synthetic", config.data_provider)
    return synthetic


def make_scanner(config: Config, provider: PriceSeriesProvider) -> SignalScanner:
    engine = SignalAnalysisEngine(
        min_confidence=config.min_confidence,
        max_confidence=config.max_confidence,
        timeframe=config.timeframe,
        min_samples=config.min_history_bars,
    )
    tracker = SignalTracker(expiry=timedelta(hours=config.signal_expiry_hours))
    return SignalScanner(
        provider,
        engine=engine,
        tracker=tracker,
        timeframe=config.timeframe,
        history_bars=config.history_bars,
        min_history_bars=config.min_history_bars,
        timeout_s=config.provider_timeout_s,
        max_signals=config.max_signals,
    )


def parse_date(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return pd.to_datetime(value, utc=True).to_pydatetime()


def print_backtest(result: BacktestResult) -> None:
    print("\n--- Backtest Results ---")
    print(f"Strategy: {result.strategy} | {result.pair} {result.timeframe}")
    print(f"Period: {result.start_date:%Y-%m-%d %H:%M} -> {result.end_date:%Y-%m-%d %H:%M}")
    print(f"Total trades: {result.total_trades} (wins: {result.winning_trades}, losses: {result.losing_trades})")
    print(f"Win rate: {result.win_rate:.1f}%")
    print(f"Total return: {result.total_return:.2f}%")
    print(f"Max drawdown: {result.max_drawdown:.2f}%")
    print(f"Sharpe ratio: {result.sharpe_ratio:.2f}")
    print(f"Profit factor: {result.profit_factor:.2f}")
    print(f"Average win / loss: {result.average_win:.2f} / {result.average_loss:.2f}")
    print(f"Final balance: {result.final_balance:.2f}")
    for t in result.trades:
        print(
            f"  {t.id} {t.direction.value} {t.entry_date:%Y-%m-%d %H:%M} @ {t.entry_price:.5f} -> "
            f"{t.exit_date:%Y-%m-%d %H:%M} @ {t.exit_price:.5f} pnl={t.pnl:.2f} ({t.reason})"
        )


def print_signals(signals: List[Signal]) -> None:
    if not signals:
        print("No signals this pass.")
        return
    for s in signals:
        print(format_signal_message(s))
        print()


def run_backtest(args: argparse.Namespace) -> int:
    """Run one backtest using args, falling back to config."""
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    timeframe = args.timeframe or config.backtest_timeframe
    end = parse_date(args.end or config.backtest_end) or datetime.now(timezone.utc)
    start = parse_date(args.start or config.backtest_start) or end - DEFAULT_LOOKBACK.get(timeframe, timedelta(days=30))
    parameters = config.backtest_parameters()
    request = BacktestRequest(
        strategy=args.strategy or config.backtest_strategy,
        pair=(args.pair or config.backtest_pair).upper(),
        timeframe=timeframe,
        start_date=start,
        end_date=end,
        parameters=parameters,
    )
    try:
        request.validate()
        if args.csv:
            provider = InMemoryPriceProvider.from_csv(args.csv, request.pair)
        else:
            provider = make_provider(config)
        engine = BacktestEngine(provider, min_bars=config.backtest_min_bars)
        result = engine.run_backtest(
            request.strategy,
            request.pair,
            request.timeframe,
            request.start_date,
            request.end_date,
            request.parameters,
        )
    except SignalEngineError as e:
        logger.error("Backtest failed (%s): %s", e.kind, e)
        return EXIT_ERROR
    print_backtest(result)
    return 0


def run_scan_once(config: Config, scanner: SignalScanner) -> List[Signal]:
    signals = scanner.scan(config.pairs)
    print_signals(signals)
    for s in signals:
        send_telegram(format_signal_message(s), config.telegram_bot_token, config.telegram_chat_id)
    perf = scanner.tracker.performance()
    print(
        f"Tracked: {len(scanner.tracker.active_signals())} active | closed {perf.total_trades} "
        f"| win rate {perf.win_rate:.1f}% | avg {perf.avg_pnl:.2f}%"
    )
    return signals


def run_scan(args: argparse.Namespace) -> int:
    """One multi-symbol scan pass."""
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    scanner = make_scanner(config, make_provider(config))
    run_scan_once(config, scanner)
    return 0


def run_live(args: argparse.Namespace) -> int:
    """Scan every scan_interval_s until interrupted."""
    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    send_telegram(
        f"Signal engine starting | {', '.join(config.pairs)} | {config.timeframe} | every {config.scan_interval_s:.0f}s",
        config.telegram_bot_token,
        config.telegram_chat_id,
    )
    scanner = make_scanner(config, make_provider(config))
    while True:
        try:
            run_scan_once(config, scanner)
            time.sleep(config.scan_interval_s)
        except KeyboardInterrupt:
            logger.info("Shutdown by user")
            send_telegram("Signal engine stopped (user request).", config.telegram_bot_token, config.telegram_chat_id)
            break
        except Exception as e:
            logger.exception("Scan loop error: %s", e)
            time.sleep(5)
    return 0


def run_strategies(args: argparse.Namespace) -> int:
    for s in available_strategies():
        print(f"{s['id']:<26} {s['name']:<26} {s['description']}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Signal Engine CLI")
    parser.add_argument("mode", choices=["backtest", "scan", "live", "strategies"], help="What to run")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--strategy", default=None, help="Backtest strategy id")
    parser.add_argument("--pair", default=None, help="Backtest pair, e.g. EURUSD")
    parser.add_argument("--timeframe", default=None, help="Backtest timeframe (1h or 1d)")
    parser.add_argument("--start", default=None, help="Backtest start date (ISO)")
    parser.add_argument("--end", default=None, help="Backtest end date (ISO)")
    parser.add_argument("--csv", type=Path, default=None, help="Backtest on bars from a CSV file")
    args = parser.parse_args(argv)
    handlers = {
        "backtest": run_backtest,
        "scan": run_scan,
        "live": run_live,
        "strategies": run_strategies,
    }
    return handlers[args.mode](args)


if __name__ == "__main__":
    exit(main())
