"""
Signal analysis engine: additive confidence scoring over ordered vote rules.

Each rule looks at price + indicators and may cast a Vote. Votes are folded in
order: the first directional vote fixes the direction; later votes only add
their weight when they agree with it (or carry no direction). Notes are kept
for every vote that fired, agreeing or not.
"""

from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from signal_engine.analysis.indicators import BollingerBands, IndicatorSnapshot
from signal_engine.core.types import Signal, SignalSide

logger = logging.getLogger("signal_engine.analysis")

BASE_CONFIDENCE = 50.0
MIN_CONFIDENCE = 65.0
MAX_CONFIDENCE = 95.0
MIN_SAMPLES = 20

MIN_VOLATILITY = 0.001
MAX_VOLATILITY = 0.01
STOP_VOL_MULT = 2.0
TARGET_VOL_MULT = 3.0


@dataclass(frozen=True)
class MarketContext:
    """Inputs every vote rule sees."""
    pair: str
    price: float
    indicators: IndicatorSnapshot
    volume: float = 0.0


@dataclass(frozen=True)
class Vote:
    direction: Optional[SignalSide]
    weight: float
    note: str


@dataclass
class SignalScore:
    """Outcome of folding the votes, before accept/reject."""
    direction: Optional[SignalSide]
    confidence: float
    notes: List[str] = field(default_factory=list)


VoteRule = Callable[[MarketContext], Optional[Vote]]


def rsi_rule(ctx: MarketContext) -> Optional[Vote]:
    value = ctx.indicators.rsi
    if value < 30:
        return Vote(SignalSide.BUY, 15, "RSI oversold")
    if value > 70:
        return Vote(SignalSide.SELL, 15, "RSI overbought")
    return None


def macd_rule(ctx: MarketContext) -> Optional[Vote]:
    m = ctx.indicators.macd
    if m.macd > m.signal and m.histogram > 0:
        return Vote(SignalSide.BUY, 12, "MACD bullish crossover")
    if m.macd < m.signal and m.histogram < 0:
        return Vote(SignalSide.SELL, 12, "MACD bearish crossover")
    return None


def moving_average_rule(ctx: MarketContext) -> Optional[Vote]:
    ema20, sma50 = ctx.indicators.ema20, ctx.indicators.sma50
    if ctx.price > ema20 > sma50:
        return Vote(SignalSide.BUY, 10, "Price above key MAs")
    if ctx.price < ema20 < sma50:
        return Vote(SignalSide.SELL, 10, "Price below key MAs")
    return None


def bollinger_rule(ctx: MarketContext) -> Optional[Vote]:
    bands = ctx.indicators.bollinger
    if ctx.price <= bands.lower:
        return Vote(SignalSide.BUY, 8, "Price at lower Bollinger Band")
    if ctx.price >= bands.upper:
        return Vote(SignalSide.SELL, 8, "Price at upper Bollinger Band")
    return None


def volume_rule(ctx: MarketContext) -> Optional[Vote]:
    if ctx.volume > 0:
        return Vote(None, 5, "Volume supporting move")
    return None


DEFAULT_RULES: Tuple[VoteRule, ...] = (
    rsi_rule,
    macd_rule,
    moving_average_rule,
    bollinger_rule,
    volume_rule,
)


def fold_votes(votes: Iterable[Optional[Vote]], base_confidence: float = BASE_CONFIDENCE) -> SignalScore:
    """Combine ordered votes. A directional vote counts only if direction is unset or agrees."""
    score = SignalScore(direction=None, confidence=base_confidence)
    for vote in votes:
        if vote is None:
            continue
        score.notes.append(vote.note)
        if vote.direction is None:
            score.confidence += vote.weight
        elif score.direction is None or score.direction == vote.direction:
            score.direction = vote.direction
            score.confidence += vote.weight
    return score


def volatility_estimate(bands: BollingerBands) -> float:
    """Relative band width, clamped to [0.001, 0.01]."""
    if bands.middle <= 0:
        return MIN_VOLATILITY
    return max(MIN_VOLATILITY, min(MAX_VOLATILITY, bands.bandwidth / bands.middle))


def risk_levels(direction: SignalSide, entry: float, volatility: float) -> Tuple[float, float]:
    """(stop_loss, take_profit) at 2x / 3x the volatility fraction of entry."""
    stop_dist = entry * volatility * STOP_VOL_MULT
    target_dist = entry * volatility * TARGET_VOL_MULT
    if direction == SignalSide.BUY:
        return entry - stop_dist, entry + target_dist
    return entry + stop_dist, entry - target_dist


def risk_reward(entry: float, stop: float, target: float) -> float:
    risk = abs(entry - stop)
    if risk <= 0:
        return 0.0
    return abs(target - entry) / risk


class SignalAnalysisEngine:
    """
    Turns price + indicator snapshot into a Signal (or None).
    Stateless between calls.
    """

    def __init__(
        self,
        rules: Sequence[VoteRule] = DEFAULT_RULES,
        min_confidence: float = MIN_CONFIDENCE,
        max_confidence: float = MAX_CONFIDENCE,
        base_confidence: float = BASE_CONFIDENCE,
        timeframe: str = "1h",
        min_samples: int = MIN_SAMPLES,
    ):
        self.rules = tuple(rules)
        self.min_confidence = min_confidence
        self.max_confidence = max_confidence
        self.base_confidence = base_confidence
        self.timeframe = timeframe
        self.min_samples = min_samples

    def evaluate(
        self,
        pair: str,
        current_price: float,
        indicators: IndicatorSnapshot,
        volume: float = 0.0,
    ) -> SignalScore:
        ctx = MarketContext(pair=pair, price=current_price, indicators=indicators, volume=volume)
        return fold_votes((rule(ctx) for rule in self.rules), self.base_confidence)

    def analyze(
        self,
        pair: str,
        current_price: float,
        indicators: IndicatorSnapshot,
        volume: float = 0.0,
        now: Optional[datetime] = None,
    ) -> Optional[Signal]:
        """Return a Signal if the votes agree on a direction with enough confidence, else None."""
        if indicators.samples is not None and indicators.samples < self.min_samples:
            logger.debug("%s: %d prices < %d, no signal", pair, indicators.samples, self.min_samples)
            return None
        score = self.evaluate(pair, current_price, indicators, volume)
        if score.direction is None or score.confidence < self.min_confidence:
            logger.debug(
                "%s: no signal (direction=%s, confidence=%.0f)",
                pair, score.direction, score.confidence,
            )
            return None
        confidence = min(self.max_confidence, score.confidence)
        vol = volatility_estimate(indicators.bollinger)
        stop, target = risk_levels(score.direction, current_price, vol)
        created = now or datetime.now(timezone.utc)
        signal = Signal(
            id=f"signal_{uuid.uuid4().hex[:12]}",
            pair=pair,
            direction=score.direction,
            entry_price=current_price,
            stop_loss=stop,
            take_profit=target,
            confidence=confidence,
            analysis=f"Technical analysis: {', '.join(score.notes)}",
            timeframe=self.timeframe,
            created_at=created,
            risk_reward=risk_reward(current_price, stop, target),
            indicators=indicators,
        )
        logger.info(
            "%s %s signal @ %.5f (confidence %.0f)",
            pair, signal.direction.value, current_price, confidence,
        )
        return signal
