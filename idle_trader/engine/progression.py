"""Progression engine: XP, levels, feature unlocks and idle income."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import datetime

from loguru import logger

from idle_trader.core import constants
from idle_trader.engine.boosts import active_multiplier
from idle_trader.engine.valuation import holdings_value
from idle_trader.models import (
    ActiveBoost,
    BoostKind,
    Feature,
    FeatureKind,
    GameState,
    XPStats,
)


def xp_to_next_level(level: int, xp_per_level: int = constants.XP_PER_LEVEL) -> float:
    """XP needed to leave ``level``: linear, ``xp_per_level * (level + 1)``."""
    return float(xp_per_level * (level + 1))


def xp_from_profit(profit: float, divisor: float = constants.XP_DIVISOR) -> int:
    """XP earned for a realized profit. Losses earn nothing."""
    return max(0, math.floor(profit / divisor))


def features_up_to(
    features: Iterable[Feature], level: int, already_unlocked: Sequence[Feature] = ()
) -> list[Feature]:
    """Features reachable at ``level`` that are not yet unlocked (matched by name)."""
    known = {feature.name for feature in already_unlocked}
    unlocked: list[Feature] = []
    for feature in sorted(features, key=lambda item: item.level_required):
        if feature.level_required <= level and feature.name not in known:
            known.add(feature.name)
            unlocked.append(feature)
    return unlocked


def base_idle_bonus(
    unlocked_features: Iterable[Feature],
    *,
    base_rate: float = constants.IDLE_BASE_RATE,
    cap: float = constants.IDLE_BONUS_CAP,
) -> float:
    bonus = base_rate + sum(
        feature.bonus for feature in unlocked_features if feature.kind == FeatureKind.IDLE_BONUS
    )
    return min(bonus, cap)


def idle_bonus(
    unlocked_features: Iterable[Feature],
    active_boosts: Iterable[ActiveBoost] = (),
    *,
    base_rate: float = constants.IDLE_BASE_RATE,
    cap: float = constants.IDLE_BONUS_CAP,
    now: datetime | None = None,
) -> float:
    """Idle income rate: feature bonuses times any idle_income boost, capped."""
    bonus = base_idle_bonus(unlocked_features, base_rate=base_rate, cap=math.inf)
    bonus *= active_multiplier(active_boosts, BoostKind.IDLE_INCOME, now)
    return min(bonus, cap)


def idle_tick_interval(
    unlocked_features: Iterable[Feature],
    *,
    base_seconds: float = constants.IDLE_BASE_INTERVAL_SECONDS,
    reduction_seconds: float = constants.IDLE_INTERVAL_REDUCTION_SECONDS,
    minimum_seconds: float = constants.IDLE_MIN_INTERVAL_SECONDS,
) -> float:
    speed_features = sum(
        1 for feature in unlocked_features if feature.kind == FeatureKind.IDLE_SPEED
    )
    return max(minimum_seconds, base_seconds - speed_features * reduction_seconds)


def apply_xp(
    stats: XPStats,
    gained: float,
    features: Iterable[Feature],
    *,
    xp_per_level: int = constants.XP_PER_LEVEL,
    base_rate: float = constants.IDLE_BASE_RATE,
    cap: float = constants.IDLE_BONUS_CAP,
) -> tuple[XPStats, list[Feature]]:
    """Add XP, rolling over as many levels as it pays for.

    Returns the new stats and the features unlocked by the level change.
    """
    if gained <= 0:
        return stats, []

    level = stats.level
    current_xp = stats.current_xp + gained
    needed = stats.xp_to_next_level
    while current_xp >= needed:
        current_xp -= needed
        level += 1
        needed = xp_to_next_level(level, xp_per_level)

    new_features = features_up_to(features, level, stats.unlocked_features)
    unlocked = [*stats.unlocked_features, *new_features]
    if level != stats.level:
        logger.info("Level up: {} -> {}", stats.level, level)
    for feature in new_features:
        logger.info("Feature unlocked: {} (level {})", feature.name, feature.level_required)

    return (
        XPStats(
            level=level,
            current_xp=current_xp,
            xp_to_next_level=needed,
            idle_bonus=base_idle_bonus(unlocked, base_rate=base_rate, cap=cap),
            unlocked_features=unlocked,
        ),
        new_features,
    )


def idle_income(
    state: GameState,
    *,
    now: datetime | None = None,
    base_rate: float = constants.IDLE_BASE_RATE,
    cap: float = constants.IDLE_BONUS_CAP,
) -> float:
    """Cash one idle tick pays at the current prices and boosts."""
    rate = idle_bonus(
        state.xp_stats.unlocked_features,
        state.active_boosts,
        base_rate=base_rate,
        cap=cap,
        now=now,
    )
    speed = active_multiplier(state.active_boosts, BoostKind.IDLE_SPEED, now)
    return holdings_value(state) * rate * speed


def process_idle_income(
    state: GameState,
    *,
    now: datetime | None = None,
    base_rate: float = constants.IDLE_BASE_RATE,
    cap: float = constants.IDLE_BONUS_CAP,
) -> float:
    """Credit one idle tick of income to cash and return the amount."""
    income = idle_income(state, now=now, base_rate=base_rate, cap=cap)
    state.portfolio.cash += income
    return income
