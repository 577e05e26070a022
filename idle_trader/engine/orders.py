"""Order book: conditional buy/sell orders checked on every price tick."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from loguru import logger

from idle_trader.catalog import Catalog
from idle_trader.engine import ledger
from idle_trader.models import (
    ActionResult,
    GameState,
    Order,
    OrderSide,
    RejectReason,
    TransactionStatus,
)


@dataclass(frozen=True, slots=True)
class OrderFill:
    """An order that triggered and filled during ``check_orders``."""

    order: Order
    result: ActionResult


def create_order(
    state: GameState,
    catalog: Catalog,
    asset_id: str,
    side: OrderSide,
    quantity: int,
    target_price: float,
    *,
    now: datetime,
) -> ActionResult:
    """Open a conditional order.

    Funds and holdings are not reserved or checked here; feasibility is
    re-evaluated when the order triggers.
    """
    if quantity <= 0:
        return ActionResult.rejected(RejectReason.INVALID_QUANTITY)
    if not target_price > 0:
        return ActionResult.rejected(RejectReason.INVALID_PRICE)
    if catalog.asset(asset_id) is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_ASSET)

    order = Order(
        id=ledger.new_id(),
        asset_id=asset_id,
        side=side,
        quantity=quantity,
        target_price=target_price,
        created_at=now,
    )
    state.orders.append(order)
    logger.debug(
        "Order {} created: {} {} x {} @ {:.4f}",
        order.id,
        side.value,
        quantity,
        asset_id,
        target_price,
    )
    return ActionResult(ok=True, order=order)


def cancel_order(state: GameState, order_id: str, *, now: datetime) -> ActionResult:
    """Remove an open order and log it as cancelled at its target price."""
    order = find_order(state, order_id)
    if order is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_ORDER)

    state.orders.remove(order)
    transaction = ledger.record_transaction(
        state,
        asset_id=order.asset_id,
        side=order.side,
        quantity=order.quantity,
        price=order.target_price,
        now=now,
        status=TransactionStatus.CANCELLED,
    )
    logger.debug("Order {} cancelled", order_id)
    return ActionResult(ok=True, transaction=transaction, order=order)


def find_order(state: GameState, order_id: str) -> Order | None:
    for order in state.orders:
        if order.id == order_id:
            return order
    return None


def is_triggered(order: Order, current_price: float) -> bool:
    if order.side == OrderSide.BUY:
        return current_price <= order.target_price
    return current_price >= order.target_price


def check_orders(
    state: GameState,
    catalog: Catalog,
    *,
    now: datetime,
    enforce_unlocks: bool = False,
) -> list[OrderFill]:
    """Fill every triggered order at its target price, in book order.

    Orders that trigger but cannot be afforded (or covered by holdings) stay
    open for a later tick. Filled orders are removed from the book.
    """
    fills: list[OrderFill] = []
    for order in list(state.orders):
        current_price = state.current_price(order.asset_id)
        if current_price is None or not is_triggered(order, current_price):
            continue
        if (
            enforce_unlocks
            and order.side == OrderSide.BUY
            and not ledger.is_unlocked(state, order.asset_id)
        ):
            continue

        execute = ledger.buy if order.side == OrderSide.BUY else ledger.sell
        result = execute(
            state,
            catalog,
            order.asset_id,
            order.quantity,
            now=now,
            price=order.target_price,
        )
        if not result.ok:
            logger.debug("Order {} triggered but not filled: {}", order.id, result.reason)
            continue

        state.orders.remove(order)
        fills.append(OrderFill(order=order, result=result))
        logger.info(
            "Order {} filled: {} {} x {} @ {:.4f}",
            order.id,
            order.side.value,
            order.quantity,
            order.asset_id,
            order.target_price,
        )
    return fills


def locked_quantity(state: GameState, asset_id: str) -> int:
    """Units reserved by open sell orders for ``asset_id``."""
    return sum(
        order.quantity
        for order in state.orders
        if order.asset_id == asset_id and order.side == OrderSide.SELL
    )
