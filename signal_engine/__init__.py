"""Technical-analysis signal generation and backtesting engine for a copy-trading platform."""

__version__ = "0.1.0"
