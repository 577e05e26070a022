"""Level-gated feature table."""

from __future__ import annotations

from idle_trader.models import Feature, FeatureKind

BASIC_TRADING = "Basic Trading"
MARKET_TRENDS = "Market Trends"
ORDERS = "Sell/Buy Orders"
ADVANCED_ANALYTICS = "Advanced Analytics"


def _idle_bonus(level: int, description: str, bonus: float = 0.01) -> Feature:
    return Feature(
        name=f"Idle Bonus +{bonus * 100:g}% (Level {level})",
        description=description,
        level_required=level,
        kind=FeatureKind.IDLE_BONUS,
        bonus=bonus,
    )


def _idle_speed(level: int, tier: str, description: str) -> Feature:
    return Feature(
        name=f"Faster Idle Income {tier}",
        description=description,
        level_required=level,
        kind=FeatureKind.IDLE_SPEED,
    )


FEATURES: tuple[Feature, ...] = (
    Feature(
        name=BASIC_TRADING,
        description="Access to basic buy/sell operations",
        level_required=1,
        kind=FeatureKind.TRADING_FEATURE,
    ),
    _idle_bonus(2, "Increased idle income rate", bonus=0.005),
    Feature(
        name=MARKET_TRENDS,
        description="Basic market trend indicators",
        level_required=3,
        kind=FeatureKind.MARKET_INSIGHT,
    ),
    _idle_bonus(5, "Further increased idle income rate"),
    Feature(
        name=ORDERS,
        description="Automatic selling/buying at specified price threshold",
        level_required=7,
        kind=FeatureKind.TRADING_FEATURE,
    ),
    Feature(
        name=ADVANCED_ANALYTICS,
        description="Detailed market analysis tools",
        level_required=10,
        kind=FeatureKind.MARKET_INSIGHT,
    ),
    _idle_bonus(15, "Level 15 idle income boost"),
    _idle_bonus(25, "Level 25 idle income boost"),
    _idle_speed(30, "I", "Reduce idle income interval by 5 seconds"),
    _idle_bonus(35, "Level 35 idle income boost"),
    _idle_speed(40, "II", "Reduce idle income interval by another 5 seconds"),
    _idle_bonus(45, "Level 45 idle income boost"),
    _idle_speed(50, "III", "Reduce idle income interval by another 5 seconds"),
    _idle_bonus(55, "Level 55 idle income boost"),
    _idle_speed(60, "IV", "Reduce idle income interval by another 5 seconds"),
    _idle_bonus(65, "Level 65 idle income boost"),
    _idle_speed(70, "V", "Reduce idle income interval by another 5 seconds"),
    _idle_bonus(75, "Level 75 idle income boost"),
    _idle_speed(80, "VI (Max)", "Reduce idle income interval to the minimum"),
    _idle_bonus(85, "Level 85 idle income boost"),
    _idle_bonus(95, "Level 95 idle income boost"),
    _idle_bonus(105, "Level 105 idle income boost"),
    _idle_bonus(115, "Level 115 idle income boost"),
    _idle_bonus(125, "Level 125 idle income boost"),
    _idle_bonus(135, "Level 135 idle income boost"),
    _idle_bonus(145, "Level 145 idle income boost"),
)
