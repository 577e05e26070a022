"""Portfolio ledger: cash and holdings accounting for buys and sells."""

from __future__ import annotations

import uuid
from datetime import datetime

from loguru import logger

from idle_trader.catalog import Catalog
from idle_trader.engine.valuation import net_worth
from idle_trader.models import (
    ActionResult,
    GameState,
    Holding,
    OrderSide,
    RejectReason,
    Transaction,
    TransactionStatus,
)


def new_id() -> str:
    return uuid.uuid4().hex


def record_transaction(
    state: GameState,
    *,
    asset_id: str,
    side: OrderSide,
    quantity: int,
    price: float,
    now: datetime,
    status: TransactionStatus = TransactionStatus.FILLED,
) -> Transaction:
    """Prepend a transaction to the newest-first log and return it."""
    transaction = Transaction(
        id=new_id(),
        asset_id=asset_id,
        side=side,
        quantity=quantity,
        price=price,
        timestamp=now,
        status=status,
    )
    state.transactions.insert(0, transaction)
    return transaction


def _fill_price(state: GameState, asset_id: str, price: float | None) -> float | None:
    if price is not None:
        return price
    return state.current_price(asset_id)


def buy(
    state: GameState,
    catalog: Catalog,
    asset_id: str,
    quantity: int,
    *,
    now: datetime,
    price: float | None = None,
) -> ActionResult:
    """Buy ``quantity`` units at ``price`` (market price when omitted).

    All-or-nothing: nothing changes unless the full cost is covered by cash.
    """
    if quantity <= 0:
        return ActionResult.rejected(RejectReason.INVALID_QUANTITY)
    if catalog.asset(asset_id) is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_ASSET)
    fill_price = _fill_price(state, asset_id, price)
    if fill_price is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_ASSET)

    cost = fill_price * quantity
    if state.portfolio.cash < cost:
        logger.debug(
            "Buy rejected: {} x {} costs {:.2f}, cash {:.2f}",
            quantity,
            asset_id,
            cost,
            state.portfolio.cash,
        )
        return ActionResult.rejected(RejectReason.INSUFFICIENT_FUNDS)

    state.portfolio.cash -= cost
    holding = state.portfolio.holding(asset_id)
    if holding is None:
        state.portfolio.holdings.append(
            Holding(asset_id=asset_id, quantity=quantity, average_price=fill_price)
        )
    else:
        total_quantity = holding.quantity + quantity
        holding.average_price = (holding.average_price * holding.quantity + cost) / total_quantity
        holding.quantity = total_quantity

    transaction = record_transaction(
        state,
        asset_id=asset_id,
        side=OrderSide.BUY,
        quantity=quantity,
        price=fill_price,
        now=now,
    )
    logger.debug("Bought {} x {} @ {:.4f}", quantity, asset_id, fill_price)
    return ActionResult(ok=True, transaction=transaction)


def sell(
    state: GameState,
    catalog: Catalog,
    asset_id: str,
    quantity: int,
    *,
    now: datetime,
    price: float | None = None,
) -> ActionResult:
    """Sell ``quantity`` units at ``price`` (market price when omitted).

    The cost basis is left unchanged; the realized profit is reported on the
    result for the progression engine.
    """
    if quantity <= 0:
        return ActionResult.rejected(RejectReason.INVALID_QUANTITY)
    if catalog.asset(asset_id) is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_ASSET)
    fill_price = _fill_price(state, asset_id, price)
    if fill_price is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_ASSET)

    holding = state.portfolio.holding(asset_id)
    if holding is None or holding.quantity < quantity:
        return ActionResult.rejected(RejectReason.INSUFFICIENT_HOLDINGS)

    proceeds = fill_price * quantity
    realized_profit = (fill_price - holding.average_price) * quantity
    state.portfolio.cash += proceeds
    holding.quantity -= quantity
    if holding.quantity == 0:
        state.portfolio.holdings.remove(holding)

    transaction = record_transaction(
        state,
        asset_id=asset_id,
        side=OrderSide.SELL,
        quantity=quantity,
        price=fill_price,
        now=now,
    )
    logger.debug(
        "Sold {} x {} @ {:.4f} (realized {:+.2f})",
        quantity,
        asset_id,
        fill_price,
        realized_profit,
    )
    return ActionResult(ok=True, transaction=transaction, realized_profit=realized_profit)


def is_unlocked(state: GameState, asset_id: str) -> bool:
    return asset_id in state.unlocked_assets


def refresh_unlocked_assets(state: GameState, catalog: Catalog) -> list[str]:
    """Unlock every asset whose unlock price is covered by net worth.

    Unlocks are never revoked. Returns the ids unlocked by this call.
    """
    worth = net_worth(state)
    newly_unlocked = [
        asset.id
        for asset in catalog.assets
        if asset.id not in state.unlocked_assets and asset.unlock_price <= worth
    ]
    if newly_unlocked:
        state.unlocked_assets.extend(newly_unlocked)
        logger.info("Unlocked assets: {}", ", ".join(newly_unlocked))
    return newly_unlocked
