"""
Technical indicators: RSI (Wilder), EMA, SMA, MACD, Bollinger Bands.

Pure functions over a price sequence. Scalar functions return the value at the
end of the sequence; *_series functions return one value per index, each using
only prices up to that index (safe for bar-by-bar replay).

Insufficient-data policy (never raises for short input):
  - price-valued indicators (SMA, EMA, Bollinger) -> last price (0.0 if empty)
  - RSI -> 50 (neutral)
  - MACD -> all zeros (no crossover)
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

NEUTRAL_RSI = 50.0

RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
BB_PERIOD = 20
BB_STD_DEV = 2.0


@dataclass(frozen=True)
class MacdValue:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float

    @property
    def bandwidth(self) -> float:
        return self.upper - self.lower


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator values at one point in a price series. Recomputed, never mutated."""
    rsi: float
    macd: MacdValue
    ema20: float
    sma20: float
    sma50: float
    bollinger: BollingerBands
    # Prices the snapshot was computed from; None when unknown.
    samples: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _as_array(prices: Sequence[float]) -> np.ndarray:
    return np.asarray(prices, dtype=float)


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


# ---------------------------------------------------------------------------
# Series
# ---------------------------------------------------------------------------

def rsi_series(prices: Sequence[float], period: int = RSI_PERIOD) -> np.ndarray:
    """Wilder RSI per index; 50 until period + 1 prices are available."""
    _check_period(period)
    arr = _as_array(prices)
    out = np.full(len(arr), NEUTRAL_RSI)
    if len(arr) < period + 1:
        return out
    deltas = np.diff(arr)
    gains = np.clip(deltas, 0.0, None)
    losses = np.clip(-deltas, 0.0, None)
    avg_gain = float(gains[:period].mean())
    avg_loss = float(losses[:period].mean())
    out[period] = _rsi_value(avg_gain, avg_loss)
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        out[i + 1] = _rsi_value(avg_gain, avg_loss)
    return out


def ema_series(prices: Sequence[float], period: int) -> np.ndarray:
    """EMA seeded with the first price; raw price until `period` samples exist."""
    _check_period(period)
    arr = _as_array(prices)
    if len(arr) == 0:
        return arr
    out = pd.Series(arr).ewm(span=period, adjust=False).mean().to_numpy(dtype=float, copy=True)
    out[: period - 1] = arr[: period - 1]
    return out


def sma_series(prices: Sequence[float], period: int) -> np.ndarray:
    _check_period(period)
    s = pd.Series(_as_array(prices))
    return s.rolling(period).mean().fillna(s).to_numpy(dtype=float, copy=True)


def macd_series(
    prices: Sequence[float],
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    (macd, signal, histogram) per index. The signal line is the EMA of the
    MACD line history, not of price. Zeros until `slow` prices are available.
    """
    for p in (fast, slow, signal):
        _check_period(p)
    arr = _as_array(prices)
    if len(arr) == 0:
        return arr.copy(), arr.copy(), arr.copy()
    s = pd.Series(arr)
    line = s.ewm(span=fast, adjust=False).mean() - s.ewm(span=slow, adjust=False).mean()
    sig = line.ewm(span=signal, adjust=False).mean()
    line_arr = line.to_numpy(dtype=float, copy=True)
    sig_arr = sig.to_numpy(dtype=float, copy=True)
    hist_arr = line_arr - sig_arr
    warm = slow - 1
    line_arr[:warm] = 0.0
    sig_arr[:warm] = 0.0
    hist_arr[:warm] = 0.0
    return line_arr, sig_arr, hist_arr


def bollinger_series(
    prices: Sequence[float],
    period: int = BB_PERIOD,
    std_dev: float = BB_STD_DEV,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """(upper, middle, lower) per index; all equal to the price before warm-up."""
    _check_period(period)
    s = pd.Series(_as_array(prices))
    mid = s.rolling(period).mean()
    sd = s.rolling(period).std(ddof=0)
    upper = (mid + sd * std_dev).fillna(s)
    lower = (mid - sd * std_dev).fillna(s)
    mid = mid.fillna(s)
    return (
        upper.to_numpy(dtype=float, copy=True),
        mid.to_numpy(dtype=float, copy=True),
        lower.to_numpy(dtype=float, copy=True),
    )


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> float:
    """Wilder RSI in [0, 100]. 50 with fewer than period + 1 prices; 100 if no losses."""
    out = rsi_series(prices, period)
    return float(out[-1]) if len(out) else NEUTRAL_RSI


def ema(prices: Sequence[float], period: int) -> float:
    out = ema_series(prices, period)
    return float(out[-1]) if len(out) else 0.0


def sma(prices: Sequence[float], period: int) -> float:
    """Mean of the last `period` prices; last price if fewer are available."""
    _check_period(period)
    arr = _as_array(prices)
    if len(arr) == 0:
        return 0.0
    if len(arr) < period:
        return float(arr[-1])
    return float(arr[-period:].mean())


def macd(
    prices: Sequence[float],
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL,
) -> MacdValue:
    line, sig, hist = macd_series(prices, fast, slow, signal)
    if len(line) == 0:
        return MacdValue(0.0, 0.0, 0.0)
    return MacdValue(float(line[-1]), float(sig[-1]), float(hist[-1]))


def bollinger_bands(
    prices: Sequence[float],
    period: int = BB_PERIOD,
    std_dev: float = BB_STD_DEV,
) -> BollingerBands:
    _check_period(period)
    arr = _as_array(prices)
    if len(arr) == 0:
        return BollingerBands(0.0, 0.0, 0.0)
    if len(arr) < period:
        last = float(arr[-1])
        return BollingerBands(last, last, last)
    window = arr[-period:]
    middle = float(window.mean())
    sd = float(window.std())
    return BollingerBands(middle + sd * std_dev, middle, middle - sd * std_dev)


def compute_snapshot(prices: Sequence[float]) -> IndicatorSnapshot:
    """All indicators the analysis engine needs, at the end of `prices`."""
    return IndicatorSnapshot(
        rsi=rsi(prices),
        macd=macd(prices),
        ema20=ema(prices, 20),
        sma20=sma(prices, 20),
        sma50=sma(prices, 50),
        bollinger=bollinger_bands(prices),
        samples=len(prices),
    )


# ---------------------------------------------------------------------------
# DataFrame helpers (backtesting)
# ---------------------------------------------------------------------------

INDICATOR_COLUMNS = [
    "rsi", "macd", "macd_signal", "macd_hist",
    "ema20", "sma20", "sma50", "bb_upper", "bb_middle", "bb_lower",
]


def indicator_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Add indicator columns to an OHLCV DataFrame. No lookahead."""
    df = df.copy()
    closes = df["close"].to_numpy(dtype=float)
    df["rsi"] = rsi_series(closes)
    df["macd"], df["macd_signal"], df["macd_hist"] = macd_series(closes)
    df["ema20"] = ema_series(closes, 20)
    df["sma20"] = sma_series(closes, 20)
    df["sma50"] = sma_series(closes, 50)
    df["bb_upper"], df["bb_middle"], df["bb_lower"] = bollinger_series(closes)
    return df


def snapshot_at(frame: pd.DataFrame, i: int) -> IndicatorSnapshot:
    """Read the snapshot for row i of a frame built by indicator_frame."""
    row = frame.iloc[i]
    return IndicatorSnapshot(
        rsi=float(row["rsi"]),
        macd=MacdValue(float(row["macd"]), float(row["macd_signal"]), float(row["macd_hist"])),
        ema20=float(row["ema20"]),
        sma20=float(row["sma20"]),
        sma50=float(row["sma50"]),
        bollinger=BollingerBands(float(row["bb_upper"]), float(row["bb_middle"]), float(row["bb_lower"])),
        samples=i + 1 if i >= 0 else len(frame) + i + 1,
    )
