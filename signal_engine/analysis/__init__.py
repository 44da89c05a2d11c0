"""Analysis: indicators, the vote-fold signal engine, signal tracking and multi-symbol scans."""

from signal_engine.analysis.indicators import (
    MacdValue,
    BollingerBands,
    IndicatorSnapshot,
    rsi,
    ema,
    sma,
    macd,
    bollinger_bands,
    compute_snapshot,
    indicator_frame,
    snapshot_at,
)
from signal_engine.analysis.engine import SignalAnalysisEngine, SignalScore, Vote, fold_votes
from signal_engine.analysis.tracker import SignalRepository, InMemorySignalRepository, SignalTracker
from signal_engine.analysis.scanner import SignalScanner

__all__ = [
    "MacdValue",
    "BollingerBands",
    "IndicatorSnapshot",
    "rsi",
    "ema",
    "sma",
    "macd",
    "bollinger_bands",
    "compute_snapshot",
    "indicator_frame",
    "snapshot_at",
    "SignalAnalysisEngine",
    "SignalScore",
    "Vote",
    "fold_votes",
    "SignalRepository",
    "InMemorySignalRepository",
    "SignalTracker",
    "SignalScanner",
]
