"""
Load configuration from config.yaml and .env. Secrets only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_PAIRS = ["EURUSD", "GBPUSD", "USDJPY", "GBPJPY", "XAUUSD", "BTCUSD"]


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def _parse_pairs(raw: Any) -> List[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(p).strip().upper() for p in raw if str(p).strip()]


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: Any = "") -> str:
        return os.getenv(key, str(default) if default is not None else "").strip()

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    api = data.get("api", {})
    market = data.get("data", {})
    signals = data.get("signals", {})
    backtest = data.get("backtest", {})
    telegram = data.get("telegram", {})
    logging_cfg = data.get("logging", {})

    return Config(
        # Data provider
        data_provider=env("DATA_PROVIDER", market.get("provider", "synthetic")).lower(),
        provider_seed=env_int("PROVIDER_SEED", market.get("seed", 42)),
        provider_timeout_s=env_float("PROVIDER_TIMEOUT_S", market.get("timeout_s", 10.0)),
        history_bars=env_int("HISTORY_BARS", market.get("history_bars", 50)),
        min_history_bars=env_int("MIN_HISTORY_BARS", market.get("min_history_bars", 20)),
        binance_api_key=env("BINANCE_API_KEY", api.get("binance_api_key", "")),
        binance_api_secret=env("BINANCE_API_SECRET", api.get("binance_api_secret", "")),
        # Signals
        pairs=_parse_pairs(os.getenv("PAIRS") or signals.get("pairs", DEFAULT_PAIRS)),
        timeframe=env("TIMEFRAME", signals.get("timeframe", "1h")),
        min_confidence=env_float("MIN_CONFIDENCE", signals.get("min_confidence", 65.0)),
        max_confidence=env_float("MAX_CONFIDENCE", signals.get("max_confidence", 95.0)),
        signal_expiry_hours=env_float("SIGNAL_EXPIRY_HOURS", signals.get("expiry_hours", 4.0)),
        max_signals=env_int("MAX_SIGNALS", signals.get("max_signals", 6)),
        scan_interval_s=env_float("SCAN_INTERVAL_S", signals.get("scan_interval_s", 900.0)),
        # Backtest
        backtest_strategy=backtest.get("strategy", "rsi_mean_reversion"),
        backtest_pair=str(backtest.get("pair", "EURUSD")).upper(),
        backtest_timeframe=backtest.get("timeframe", "1h"),
        backtest_start=backtest.get("start_date"),
        backtest_end=backtest.get("end_date"),
        backtest_initial_balance=float(backtest.get("initial_balance", 10000.0)),
        backtest_lot_size=float(backtest.get("lot_size", 100000.0)),
        backtest_stop_loss_pct=float(backtest.get("stop_loss_pct", 2.0)),
        backtest_take_profit_pct=float(backtest.get("take_profit_pct", 3.0)),
        backtest_min_bars=int(backtest.get("min_bars", 50)),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "signal_engine.log"),
    )


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "data_provider", "provider_seed", "provider_timeout_s", "history_bars", "min_history_bars",
        "binance_api_key", "binance_api_secret",
        "pairs", "timeframe", "min_confidence", "max_confidence", "signal_expiry_hours",
        "max_signals", "scan_interval_s",
        "backtest_strategy", "backtest_pair", "backtest_timeframe", "backtest_start", "backtest_end",
        "backtest_initial_balance", "backtest_lot_size", "backtest_stop_loss_pct",
        "backtest_take_profit_pct", "backtest_min_bars",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        data_provider: str = "synthetic",
        provider_seed: int = 42,
        provider_timeout_s: float = 10.0,
        history_bars: int = 50,
        min_history_bars: int = 20,
        binance_api_key: str = "",
        binance_api_secret: str = "",
        pairs: Optional[List[str]] = None,
        timeframe: str = "1h",
        min_confidence: float = 65.0,
        max_confidence: float = 95.0,
        signal_expiry_hours: float = 4.0,
        max_signals: int = 6,
        scan_interval_s: float = 900.0,
        backtest_strategy: str = "rsi_mean_reversion",
        backtest_pair: str = "EURUSD",
        backtest_timeframe: str = "1h",
        backtest_start: Optional[str] = None,
        backtest_end: Optional[str] = None,
        backtest_initial_balance: float = 10000.0,
        backtest_lot_size: float = 100000.0,
        backtest_stop_loss_pct: float = 2.0,
        backtest_take_profit_pct: float = 3.0,
        backtest_min_bars: int = 50,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "signal_engine.log",
    ):
        self.data_provider = data_provider
        self.provider_seed = provider_seed
        self.provider_timeout_s = provider_timeout_s
        self.history_bars = history_bars
        self.min_history_bars = min_history_bars
        self.binance_api_key = binance_api_key
        self.binance_api_secret = binance_api_secret
        self.pairs = list(pairs) if pairs else list(DEFAULT_PAIRS)
        self.timeframe = timeframe
        self.min_confidence = min_confidence
        self.max_confidence = max_confidence
        self.signal_expiry_hours = signal_expiry_hours
        self.max_signals = max_signals
        self.scan_interval_s = scan_interval_s
        self.backtest_strategy = backtest_strategy
        self.backtest_pair = backtest_pair
        self.backtest_timeframe = backtest_timeframe
        self.backtest_start = backtest_start
        self.backtest_end = backtest_end
        self.backtest_initial_balance = backtest_initial_balance
        self.backtest_lot_size = backtest_lot_size
        self.backtest_stop_loss_pct = backtest_stop_loss_pct
        self.backtest_take_profit_pct = backtest_take_profit_pct
        self.backtest_min_bars = backtest_min_bars
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file

    def backtest_parameters(self) -> dict:
        """Default backtest parameter overrides taken from config."""
        return {
            "initial_balance": self.backtest_initial_balance,
            "lot_size": self.backtest_lot_size,
            "stop_loss_pct": self.backtest_stop_loss_pct,
            "take_profit_pct": self.backtest_take_profit_pct,
        }
