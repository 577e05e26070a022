"""Market boost shop."""

from __future__ import annotations

from idle_trader.models import BoostKind, MarketBoost

BOOSTS: tuple[MarketBoost, ...] = (
    # Tier 1
    MarketBoost(
        id="quick_income",
        name="Quick Income",
        description="2x faster idle income for 30 seconds",
        kind=BoostKind.IDLE_SPEED,
        multiplier=2,
        duration_seconds=30,
        token_cost=5,
    ),
    MarketBoost(
        id="income_surge",
        name="Income Surge",
        description="3x idle income rate for 1 minute",
        kind=BoostKind.IDLE_INCOME,
        multiplier=3,
        duration_seconds=60,
        token_cost=15,
    ),
    MarketBoost(
        id="xp_rush",
        name="XP Rush",
        description="2.5x XP from all profits for 2 minutes",
        kind=BoostKind.XP_GAIN,
        multiplier=2.5,
        duration_seconds=120,
        token_cost=30,
    ),
    MarketBoost(
        id="market_frenzy",
        name="Market Frenzy",
        description="2x price volatility for 1 minute",
        kind=BoostKind.PRICE_VOLATILITY,
        multiplier=2,
        duration_seconds=60,
        token_cost=50,
    ),
    # Tier 2
    MarketBoost(
        id="quick_income_2",
        name="Quick Income II",
        description="4x faster idle income for 20 seconds",
        kind=BoostKind.IDLE_SPEED,
        multiplier=4,
        duration_seconds=20,
        token_cost=100,
    ),
    MarketBoost(
        id="income_surge_2",
        name="Income Surge II",
        description="5x idle income rate for 45 seconds",
        kind=BoostKind.IDLE_INCOME,
        multiplier=5,
        duration_seconds=45,
        token_cost=250,
    ),
    MarketBoost(
        id="xp_rush_2",
        name="XP Rush II",
        description="5x XP from all profits for 2 minutes",
        kind=BoostKind.XP_GAIN,
        multiplier=5,
        duration_seconds=120,
        token_cost=500,
    ),
    MarketBoost(
        id="market_frenzy_2",
        name="Market Frenzy II",
        description="3x price volatility for 45 seconds",
        kind=BoostKind.PRICE_VOLATILITY,
        multiplier=3,
        duration_seconds=45,
        token_cost=750,
    ),
    # Tier 3
    MarketBoost(
        id="quick_income_3",
        name="Quick Income III",
        description="8x faster idle income for 15 seconds",
        kind=BoostKind.IDLE_SPEED,
        multiplier=8,
        duration_seconds=15,
        token_cost=1000,
    ),
    MarketBoost(
        id="income_surge_3",
        name="Income Surge III",
        description="10x idle income rate for 30 seconds",
        kind=BoostKind.IDLE_INCOME,
        multiplier=10,
        duration_seconds=30,
        token_cost=2500,
    ),
    MarketBoost(
        id="xp_rush_3",
        name="XP Rush III",
        description="10x XP from all profits for 1 minute",
        kind=BoostKind.XP_GAIN,
        multiplier=10,
        duration_seconds=60,
        token_cost=5000,
    ),
    MarketBoost(
        id="market_frenzy_3",
        name="Market Frenzy III",
        description="5x price volatility for 30 seconds",
        kind=BoostKind.PRICE_VOLATILITY,
        multiplier=5,
        duration_seconds=30,
        token_cost=7500,
    ),
    MarketBoost(
        id="market_mayhem",
        name="Market Mayhem",
        description="3x price volatility for 15 seconds",
        kind=BoostKind.PRICE_VOLATILITY,
        multiplier=3,
        duration_seconds=15,
        token_cost=10000,
    ),
)
