"""Tests for XP, levels, features and idle income."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from idle_trader.catalog import Catalog
from idle_trader.catalog.features import ADVANCED_ANALYTICS, BASIC_TRADING, MARKET_TRENDS
from idle_trader.engine import ledger, progression
from idle_trader.models import ActiveBoost, BoostKind, FeatureKind, GameState, XPStats

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _boost(kind: BoostKind, multiplier: float, seconds: float = 60) -> ActiveBoost:
    return ActiveBoost(
        id=f"{kind.value}_test",
        name="Test Boost",
        kind=kind,
        multiplier=multiplier,
        duration_seconds=seconds,
        token_cost=1,
        start_time=NOW,
        end_time=NOW + timedelta(seconds=seconds),
    )


def test_xp_curve_is_linear_and_increasing() -> None:
    assert progression.xp_to_next_level(1) == 2_000
    assert progression.xp_to_next_level(2) == 3_000
    assert progression.xp_to_next_level(10, xp_per_level=100) == 1_100


@pytest.mark.parametrize(
    ("profit", "expected"),
    [(500.0, 50), (505.9, 50), (9.99, 0), (0.0, 0), (-250.0, 0)],
)
def test_xp_from_profit_floors_and_ignores_losses(profit: float, expected: int) -> None:
    assert progression.xp_from_profit(profit) == expected


def test_new_player_starts_with_level_one_features(state: GameState) -> None:
    names = [feature.name for feature in state.xp_stats.unlocked_features]

    assert state.xp_stats.level == 1
    assert names == [BASIC_TRADING]
    assert state.xp_stats.idle_bonus == pytest.approx(0.001)


def test_single_gain_can_cross_several_levels(catalog: Catalog, state: GameState) -> None:
    stats, new_features = progression.apply_xp(
        state.xp_stats, 2_000 + 3_000 + 10, catalog.features
    )

    assert stats.level == 3
    assert stats.current_xp == pytest.approx(10)
    assert stats.xp_to_next_level == pytest.approx(4_000)
    assert stats.current_xp < stats.xp_to_next_level
    assert MARKET_TRENDS in [feature.name for feature in new_features]
    assert stats.has_feature(MARKET_TRENDS)
    assert stats.idle_bonus == pytest.approx(0.001 + 0.005)


def test_gain_below_threshold_keeps_level(catalog: Catalog, state: GameState) -> None:
    stats, new_features = progression.apply_xp(state.xp_stats, 1_999, catalog.features)

    assert stats.level == 1
    assert stats.current_xp == pytest.approx(1_999)
    assert new_features == []


def test_features_are_never_duplicated_or_lost(catalog: Catalog, state: GameState) -> None:
    stats = state.xp_stats
    for _ in range(5):
        stats, _ = progression.apply_xp(stats, 20_000, catalog.features)

    names = [feature.name for feature in stats.unlocked_features]
    assert len(names) == len(set(names))
    assert set(names) >= {
        feature.name for feature in catalog.features if feature.level_required <= stats.level
    }
    assert stats.has_feature(ADVANCED_ANALYTICS)


def test_non_positive_gain_is_ignored(catalog: Catalog, state: GameState) -> None:
    stats, new_features = progression.apply_xp(state.xp_stats, 0, catalog.features)

    assert stats is state.xp_stats
    assert new_features == []


def test_idle_bonus_sums_feature_bonuses(catalog: Catalog) -> None:
    unlocked = progression.features_up_to(catalog.features, 5)

    assert progression.idle_bonus(unlocked) == pytest.approx(0.001 + 0.005 + 0.01)


def test_idle_income_boost_multiplies_and_cap_applies(catalog: Catalog) -> None:
    unlocked = progression.features_up_to(catalog.features, 5)

    boosted = progression.idle_bonus(
        unlocked, [_boost(BoostKind.IDLE_INCOME, 3)], now=NOW
    )
    capped = progression.idle_bonus(
        unlocked, [_boost(BoostKind.IDLE_INCOME, 100)], now=NOW
    )
    expired = progression.idle_bonus(
        unlocked, [_boost(BoostKind.IDLE_INCOME, 3)], now=NOW + timedelta(minutes=5)
    )

    assert boosted == pytest.approx(0.016 * 3)
    assert capped == pytest.approx(0.25)
    assert expired == pytest.approx(0.016)


@pytest.mark.parametrize(("level", "interval"), [(1, 30.0), (30, 25.0), (40, 20.0), (80, 5.0)])
def test_idle_interval_shrinks_with_speed_features(
    catalog: Catalog, level: int, interval: float
) -> None:
    unlocked = progression.features_up_to(catalog.features, level)

    assert progression.idle_tick_interval(unlocked) == pytest.approx(interval)


def test_idle_interval_has_a_floor(catalog: Catalog) -> None:
    speed = [f for f in catalog.features if f.kind == FeatureKind.IDLE_SPEED]

    assert progression.idle_tick_interval(speed * 3) == pytest.approx(5.0)


def test_idle_income_pays_on_holdings_value(catalog: Catalog, state: GameState) -> None:
    ledger.buy(state, catalog, "tech1", 10, now=NOW)

    income = progression.process_idle_income(state, now=NOW)

    assert income == pytest.approx(1.0)
    assert state.portfolio.cash == pytest.approx(9_001.0)


def test_idle_speed_boost_multiplies_income(catalog: Catalog, state: GameState) -> None:
    ledger.buy(state, catalog, "tech1", 10, now=NOW)
    state.active_boosts = [_boost(BoostKind.IDLE_SPEED, 2)]

    assert progression.idle_income(state, now=NOW) == pytest.approx(2.0)


def test_no_holdings_means_no_idle_income(state: GameState) -> None:
    assert progression.process_idle_income(state, now=NOW) == 0.0
    assert state.portfolio.cash == pytest.approx(10_000.0)


def test_xp_stats_requires_positive_threshold() -> None:
    with pytest.raises(ValueError):
        XPStats(xp_to_next_level=0)
