"""Telegram notifications for emitted signals. Never log token or chat_id."""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

import requests

from signal_engine.utils.precision import format_price

if TYPE_CHECKING:
    from signal_engine.core.types import Signal

logger = logging.getLogger("signal_engine.utils.telegram")


def format_signal_message(signal: "Signal") -> str:
    """One-line summary of a signal, prices at display precision."""
    pair = signal.pair
    return (
        f"{signal.direction.value} {pair} @ {format_price(pair, signal.entry_price)} | "
        f"SL {format_price(pair, signal.stop_loss)} | TP {format_price(pair, signal.take_profit)} | "
        f"conf {signal.confidence:.0f}% | RR {signal.risk_reward:.1f} | {signal.timeframe}\n"
        f"{signal.analysis}"
    )


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success; False if not configured or failed."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text}
        r = requests.post(url, json=payload, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.exception("Telegram error: %s", e)
        return False
