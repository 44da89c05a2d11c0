"""Unit tests for core.config."""

import os
from pathlib import Path

import pytest
from signal_engine.core.config import DEFAULT_PAIRS, load_config

ENV_KEYS = (
    "DATA_PROVIDER", "PAIRS", "TIMEFRAME", "MIN_CONFIDENCE", "PROVIDER_TIMEOUT_S",
    "MAX_SIGNALS", "TELEGRAM_BOT_TOKEN", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_files(tmp_path):
    config = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    assert config.data_provider == "synthetic"
    assert config.pairs == DEFAULT_PAIRS
    assert config.min_confidence == 65.0
    assert config.signal_expiry_hours == 4.0
    assert config.backtest_min_bars == 50
    assert config.log_dir == Path("logs")


def test_yaml_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "signals:\n"
        "  pairs: [eurusd, XAUUSD]\n"
        "  timeframe: 1d\n"
        "  max_signals: 3\n"
        "backtest:\n"
        "  strategy: trend_following\n"
        "  lot_size: 1000\n",
        encoding="utf-8",
    )
    config = load_config(path, project_root=tmp_path)
    assert config.pairs == ["EURUSD", "XAUUSD"]
    assert config.timeframe == "1d"
    assert config.max_signals == 3
    assert config.backtest_strategy == "trend_following"
    assert config.backtest_parameters()["lot_size"] == 1000.0


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("signals:\n  min_confidence: 70\n  timeframe: 1h\n", encoding="utf-8")
    monkeypatch.setenv("MIN_CONFIDENCE", "80")
    monkeypatch.setenv("PAIRS", "gbpusd, usdjpy")
    monkeypatch.setenv("DATA_PROVIDER", "Binance")
    config = load_config(path, project_root=tmp_path)
    assert config.min_confidence == 80.0
    assert config.pairs == ["GBPUSD", "USDJPY"]
    assert config.data_provider == "binance"
    assert config.timeframe == "1h"


def test_dotenv_file_loaded(tmp_path):
    (tmp_path / ".env").write_text("TELEGRAM_BOT_TOKEN=abc123\n", encoding="utf-8")
    try:
        config = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    finally:
        os.environ.pop("TELEGRAM_BOT_TOKEN", None)
    assert config.telegram_bot_token == "abc123"


def test_config_has_fixed_fields(tmp_path):
    config = load_config(tmp_path / "missing.yaml", project_root=tmp_path)
    with pytest.raises(AttributeError):
        config.not_a_setting = 1
