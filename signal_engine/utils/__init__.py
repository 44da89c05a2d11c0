"""Utils: Telegram, timeframes, price precision."""

from signal_engine.utils.precision import price_decimals, round_price, format_price
from signal_engine.utils.telegram import send_telegram, format_signal_message
from signal_engine.utils.timeframes import timeframe_minutes, timeframe_delta, bars_between

__all__ = [
    "price_decimals",
    "round_price",
    "format_price",
    "send_telegram",
    "format_signal_message",
    "timeframe_minutes",
    "timeframe_delta",
    "bars_between",
]
