"""Tests for the portfolio ledger."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from idle_trader.catalog import Catalog
from idle_trader.engine import ledger
from idle_trader.engine.progression import xp_from_profit
from idle_trader.engine.valuation import holdings_value, net_worth, unrealized_profit
from idle_trader.models import GameState, OrderSide, RejectReason, TransactionStatus

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _set_price(state: GameState, asset_id: str, price: float) -> None:
    runtime = state.asset_state(asset_id)
    assert runtime is not None
    runtime.current_price = price


def test_buy_debits_cash_and_opens_holding(catalog: Catalog, state: GameState) -> None:
    result = ledger.buy(state, catalog, "tech1", 10, now=NOW)

    assert result.ok
    assert state.portfolio.cash == pytest.approx(9_000.0)
    holding = state.portfolio.holding("tech1")
    assert holding is not None
    assert holding.quantity == 10
    assert holding.average_price == pytest.approx(100.0)
    assert result.transaction is not None
    assert result.transaction.status == TransactionStatus.FILLED
    assert state.transactions[0] == result.transaction


def test_sell_realizes_profit_and_removes_empty_holding(
    catalog: Catalog, state: GameState
) -> None:
    ledger.buy(state, catalog, "tech1", 10, now=NOW)
    _set_price(state, "tech1", 150.0)

    result = ledger.sell(state, catalog, "tech1", 10, now=NOW)

    assert result.ok
    assert state.portfolio.cash == pytest.approx(10_500.0)
    assert state.portfolio.holding("tech1") is None
    assert result.realized_profit == pytest.approx(500.0)
    assert xp_from_profit(result.realized_profit) == 50


def test_buy_beyond_cash_is_rejected_without_changes(catalog: Catalog, state: GameState) -> None:
    before = state.model_dump()

    result = ledger.buy(state, catalog, "tech1", 101, now=NOW)

    assert not result.ok
    assert result.reason == RejectReason.INSUFFICIENT_FUNDS
    assert state.model_dump() == before


def test_buy_spending_exactly_all_cash_is_allowed(catalog: Catalog, state: GameState) -> None:
    result = ledger.buy(state, catalog, "tech1", 100, now=NOW)

    assert result.ok
    assert state.portfolio.cash == pytest.approx(0.0)


def test_sell_more_than_held_is_rejected(catalog: Catalog, state: GameState) -> None:
    ledger.buy(state, catalog, "tech1", 5, now=NOW)

    result = ledger.sell(state, catalog, "tech1", 6, now=NOW)

    assert result.reason == RejectReason.INSUFFICIENT_HOLDINGS
    holding = state.portfolio.holding("tech1")
    assert holding is not None and holding.quantity == 5


def test_sell_without_holding_is_rejected(catalog: Catalog, state: GameState) -> None:
    result = ledger.sell(state, catalog, "tech1", 1, now=NOW)

    assert result.reason == RejectReason.INSUFFICIENT_HOLDINGS


@pytest.mark.parametrize("quantity", [0, -3])
def test_non_positive_quantities_are_rejected(
    catalog: Catalog, state: GameState, quantity: int
) -> None:
    assert ledger.buy(state, catalog, "tech1", quantity, now=NOW).reason == (
        RejectReason.INVALID_QUANTITY
    )
    assert ledger.sell(state, catalog, "tech1", quantity, now=NOW).reason == (
        RejectReason.INVALID_QUANTITY
    )
    assert state.transactions == []


def test_unknown_asset_is_rejected(catalog: Catalog, state: GameState) -> None:
    assert ledger.buy(state, catalog, "nope", 1, now=NOW).reason == RejectReason.UNKNOWN_ASSET


def test_average_price_is_weighted_and_unchanged_by_sells(
    catalog: Catalog, state: GameState
) -> None:
    ledger.buy(state, catalog, "tech1", 10, now=NOW)
    _set_price(state, "tech1", 200.0)
    ledger.buy(state, catalog, "tech1", 10, now=NOW)

    holding = state.portfolio.holding("tech1")
    assert holding is not None
    assert holding.average_price == pytest.approx(150.0)

    result = ledger.sell(state, catalog, "tech1", 5, now=NOW)

    assert holding.quantity == 15
    assert holding.average_price == pytest.approx(150.0)
    assert result.realized_profit == pytest.approx(250.0)


def test_buy_then_sell_at_same_price_conserves_cash(catalog: Catalog, state: GameState) -> None:
    ledger.buy(state, catalog, "tech1", 7, now=NOW)
    result = ledger.sell(state, catalog, "tech1", 7, now=NOW)

    assert state.portfolio.cash == pytest.approx(10_000.0)
    assert result.realized_profit == pytest.approx(0.0)
    assert state.portfolio.holdings == []


def test_losing_sell_reports_negative_profit_and_no_xp(
    catalog: Catalog, state: GameState
) -> None:
    ledger.buy(state, catalog, "tech1", 10, now=NOW)
    _set_price(state, "tech1", 80.0)

    result = ledger.sell(state, catalog, "tech1", 10, now=NOW)

    assert result.realized_profit == pytest.approx(-200.0)
    assert xp_from_profit(result.realized_profit) == 0


def test_transactions_are_newest_first(catalog: Catalog, state: GameState) -> None:
    ledger.buy(state, catalog, "tech1", 1, now=NOW)
    ledger.sell(state, catalog, "tech1", 1, now=NOW + timedelta(seconds=1))

    assert [tx.side for tx in state.transactions] == [OrderSide.SELL, OrderSide.BUY]


def test_valuations(catalog: Catalog, state: GameState) -> None:
    ledger.buy(state, catalog, "tech1", 10, now=NOW)
    _set_price(state, "tech1", 120.0)

    assert holdings_value(state) == pytest.approx(1_200.0)
    assert net_worth(state) == pytest.approx(10_200.0)
    assert unrealized_profit(state) == pytest.approx(200.0)


def test_asset_unlocks_follow_net_worth_and_never_revert(
    catalog: Catalog, state: GameState
) -> None:
    assert ledger.refresh_unlocked_assets(state, catalog) == []
    assert state.unlocked_assets == ["tech1"]

    state.portfolio.cash = 30_000.0
    unlocked = ledger.refresh_unlocked_assets(state, catalog)

    assert set(unlocked) == {"retail1", "gold", "bio1"}
    assert ledger.is_unlocked(state, "gold")

    state.portfolio.cash = 0.0
    assert ledger.refresh_unlocked_assets(state, catalog) == []
    assert ledger.is_unlocked(state, "gold")
