"""Achievement rule table.

Each category is declared as ``(id, name, threshold, reward)`` rows and expanded
into predicates over the full game state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from idle_trader.engine.valuation import holdings_value, unrealized_profit
from idle_trader.models import AchievementCategory, GameState, TransactionStatus

Predicate = Callable[[GameState], bool]


@dataclass(frozen=True, slots=True)
class Achievement:
    """Static achievement definition."""

    id: str
    name: str
    description: str
    predicate: Predicate
    reward: int
    category: AchievementCategory


_PROFIT_TIERS = (
    ("newbie", "Newbie", 100, 1),
    ("profit_hunter", "Profit Hunter", 10_000, 10),
    ("profit_master", "Profit Master", 100_000, 50),
    ("profit_legend", "Profit Legend", 1_000_000, 200),
    ("profit_god", "Profit God", 10_000_000, 500),
    ("profit_titan", "Profit Titan", 1_000_000_000, 1000),
    ("profit_emperor", "Profit Emperor", 10_000_000_000, 1500),
    ("profit_sovereign", "Profit Sovereign", 100_000_000_000, 2000),
    ("profit_immortal", "Profit Immortal", 500_000_000_000, 2500),
)

_LEVEL_TIERS = (
    ("market_apprentice", "Market Apprentice", 10, 5),
    ("market_adept", "Market Adept", 25, 15),
    ("market_expert", "Market Expert", 50, 50),
    ("market_master", "Market Master", 100, 200),
    ("market_legend", "Market Legend", 200, 500),
    ("market_titan", "Market Titan", 300, 1000),
    ("market_emperor", "Market Emperor", 500, 1500),
    ("market_sovereign", "Market Sovereign", 750, 2000),
    ("market_immortal", "Market Immortal", 1000, 2500),
)

_CASH_TIERS = (
    ("first_grand", "First Grand", 1_000, 3),
    ("high_roller", "High Roller", 100_000, 30),
    ("cash_baron", "Cash Baron", 1_000_000, 100),
    ("cash_mogul", "Cash Mogul", 10_000_000, 250),
    ("cash_emperor", "Cash Emperor", 100_000_000, 500),
    ("cash_titan", "Cash Titan", 1_000_000_000, 1000),
    ("cash_overlord", "Cash Overlord", 10_000_000_000, 1500),
    ("cash_sovereign", "Cash Sovereign", 100_000_000_000, 2000),
    ("cash_immortal", "Cash Immortal", 1_000_000_000_000, 2500),
)

_DIVERSITY_TIERS = (
    ("diversified", "Diversified", 5, 10),
    ("well_diversified", "Well Diversified", 10, 25),
)

_PORTFOLIO_VALUE_TIERS = (
    ("portfolio_expert", "Portfolio Expert", 1_000_000, 100),
    ("portfolio_master", "Portfolio Master", 10_000_000, 250),
    ("portfolio_legend", "Portfolio Legend", 100_000_000, 500),
    ("portfolio_titan", "Portfolio Titan", 1_000_000_000, 1000),
    ("portfolio_emperor", "Portfolio Emperor", 10_000_000_000, 1500),
    ("portfolio_sovereign", "Portfolio Sovereign", 100_000_000_000, 2000),
    ("portfolio_immortal", "Portfolio Immortal", 1_000_000_000_000, 2500),
)

_TRADING_TIERS = (
    ("first_trade", "First Trade", 1, 1),
    ("active_trader", "Active Trader", 100, 50),
    ("trading_expert", "Trading Expert", 1_000, 200),
    ("trading_master", "Trading Master", 10_000, 500),
    ("trading_titan", "Trading Titan", 25_000, 1000),
    ("trading_emperor", "Trading Emperor", 50_000, 1500),
    ("trading_sovereign", "Trading Sovereign", 100_000, 2000),
    ("trading_immortal", "Trading Immortal", 250_000, 2500),
)


def _at_least(metric: Callable[[GameState], float], threshold: float) -> Predicate:
    return lambda state: metric(state) >= threshold


def _expand(
    rows: tuple[tuple[str, str, int, int], ...],
    category: AchievementCategory,
    metric: Callable[[GameState], float],
    describe: Callable[[int], str],
) -> list[Achievement]:
    return [
        Achievement(
            id=achievement_id,
            name=name,
            description=describe(threshold),
            predicate=_at_least(metric, threshold),
            reward=reward,
            category=category,
        )
        for achievement_id, name, threshold, reward in rows
    ]


def _completed_trades(state: GameState) -> float:
    return sum(1 for tx in state.transactions if tx.status == TransactionStatus.FILLED)


ACHIEVEMENTS: tuple[Achievement, ...] = tuple(
    _expand(
        _PROFIT_TIERS,
        AchievementCategory.PROFIT,
        unrealized_profit,
        lambda t: f"Make ${t:,} in profit",
    )
    + _expand(
        _LEVEL_TIERS,
        AchievementCategory.LEVEL,
        lambda state: state.xp_stats.level,
        lambda t: f"Reach Level {t}",
    )
    + _expand(
        _CASH_TIERS,
        AchievementCategory.CASH,
        lambda state: state.portfolio.cash,
        lambda t: f"Hold ${t:,} in cash",
    )
    + _expand(
        _DIVERSITY_TIERS,
        AchievementCategory.PORTFOLIO,
        lambda state: len(state.portfolio.holdings),
        lambda t: f"Own {t} different assets",
    )
    + _expand(
        _PORTFOLIO_VALUE_TIERS,
        AchievementCategory.PORTFOLIO,
        holdings_value,
        lambda t: f"Have a portfolio worth ${t:,}",
    )
    + _expand(
        _TRADING_TIERS,
        AchievementCategory.TRADING,
        _completed_trades,
        lambda t: "Complete your first transaction" if t == 1 else f"Complete {t:,} transactions",
    )
)
