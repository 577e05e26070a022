"""Derived valuations over a game state."""

from __future__ import annotations

from idle_trader.models import GameState


def holdings_value(state: GameState) -> float:
    """Market value of all holdings at current prices."""
    total = 0.0
    for holding in state.portfolio.holdings:
        price = state.current_price(holding.asset_id)
        if price is None:
            continue
        total += price * holding.quantity
    return total


def net_worth(state: GameState) -> float:
    """Cash plus holdings value, the figure asset unlocks are measured against."""
    return state.portfolio.cash + holdings_value(state)


def unrealized_profit(state: GameState) -> float:
    total = 0.0
    for holding in state.portfolio.holdings:
        price = state.current_price(holding.asset_id)
        if price is None:
            continue
        total += (price - holding.average_price) * holding.quantity
    return total
