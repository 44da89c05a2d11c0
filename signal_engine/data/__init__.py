"""Price series providers: interface, synthetic generator, in-memory, Binance, fallback chain."""

from signal_engine.data.base import PriceSeriesProvider, bars_to_frame, frame_to_bars, ensure_utc
from signal_engine.data.fallback import FallbackPriceProvider
from signal_engine.data.memory import InMemoryPriceProvider
from signal_engine.data.synthetic import SyntheticPriceProvider

__all__ = [
    "PriceSeriesProvider",
    "bars_to_frame",
    "frame_to_bars",
    "ensure_utc",
    "FallbackPriceProvider",
    "InMemoryPriceProvider",
    "SyntheticPriceProvider",
]
