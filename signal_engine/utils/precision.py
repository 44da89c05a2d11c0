"""Price display precision per pair (JPY-quoted pairs use 3 decimals)."""

from __future__ import annotations


def price_decimals(pair: str) -> int:
    return 3 if "JPY" in pair.upper() else 5


def round_price(pair: str, price: float) -> float:
    """Round for presentation only. Internal math stays at full precision."""
    return round(price, price_decimals(pair))


def format_price(pair: str, price: float) -> str:
    return f"{price:.{price_decimals(pair)}f}"
