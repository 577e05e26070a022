"""Market insight analytics over an asset's price history."""

from __future__ import annotations

import statistics
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from idle_trader.models import PricePoint

MAX_TREND_STRENGTH = 3


@dataclass(frozen=True, slots=True)
class TrendSignal:
    change_pct: float
    strength: int

    @property
    def is_positive(self) -> bool:
        return self.change_pct >= 0


@dataclass(frozen=True, slots=True)
class PriceMetrics:
    """Summary statistics for the recent price window."""

    volatility_pct: float
    momentum_pct: float
    support: float
    resistance: float
    time_span_minutes: int
    samples: int


def trend_signal(history: Sequence[PricePoint], volatility: float) -> TrendSignal:
    """Percent change from the oldest to the newest sample and a 0-3 strength.

    Strength buckets the move in thirds of the asset's per-tick volatility.
    ``history`` is newest-first.
    """
    if len(history) < 2:
        return TrendSignal(change_pct=0.0, strength=0)
    newest = history[0].price
    oldest = history[-1].price
    change_pct = (newest - oldest) / oldest * 100
    expected_max_change = volatility * 100
    if expected_max_change <= 0:
        return TrendSignal(change_pct=change_pct, strength=0)
    strength = min(MAX_TREND_STRENGTH, int(abs(change_pct) // (expected_max_change / 3)))
    return TrendSignal(change_pct=change_pct, strength=strength)


def price_metrics(
    history: Sequence[PricePoint],
    now: datetime,
    window: timedelta = timedelta(hours=1),
) -> PriceMetrics | None:
    """Volatility, momentum and support/resistance over the trailing window."""
    recent = sorted(
        (point for point in history if point.timestamp >= now - window),
        key=lambda point: point.timestamp,
    )
    if len(recent) < 2:
        return None

    changes = [
        (later.price - earlier.price) / earlier.price * 100
        for earlier, later in zip(recent, recent[1:])
    ]
    prices = [point.price for point in recent]
    span = recent[-1].timestamp - recent[0].timestamp
    return PriceMetrics(
        volatility_pct=statistics.pstdev(changes),
        momentum_pct=(prices[-1] - prices[0]) / prices[0] * 100,
        support=min(prices),
        resistance=max(prices),
        time_span_minutes=round(span.total_seconds() / 60),
        samples=len(recent),
    )


@dataclass(frozen=True, slots=True)
class AssetInsight:
    asset_id: str
    trend: TrendSignal
    metrics: PriceMetrics | None = None
