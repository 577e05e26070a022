"""Boost lifecycle: activation, expiry and multiplier lookup."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from loguru import logger

from idle_trader.catalog import Catalog
from idle_trader.models import (
    ActionResult,
    ActiveBoost,
    BoostKind,
    GameState,
    RejectReason,
)


def prune_expired(active_boosts: Iterable[ActiveBoost], now: datetime) -> list[ActiveBoost]:
    """Drop every boost whose window has closed (``end_time <= now``)."""
    return [boost for boost in active_boosts if not boost.is_expired(now)]


def active_multiplier(
    active_boosts: Iterable[ActiveBoost],
    kind: BoostKind,
    now: datetime | None = None,
) -> float:
    """Multiplier of the most recently started live boost of ``kind``, else 1.

    Boosts of different kinds compose independently; when two of the same kind
    overlap the latest ``start_time`` wins.
    """
    latest: ActiveBoost | None = None
    for boost in active_boosts:
        if boost.kind != kind:
            continue
        if now is not None and boost.is_expired(now):
            continue
        if latest is None or boost.start_time >= latest.start_time:
            latest = boost
    return latest.multiplier if latest is not None else 1.0


def activate_boost(
    state: GameState, catalog: Catalog, boost_id: str, now: datetime
) -> ActionResult:
    """Spend tokens on a boost and start its window at ``now``."""
    boost = catalog.boost(boost_id)
    if boost is None:
        return ActionResult.rejected(RejectReason.UNKNOWN_BOOST)

    state.active_boosts = prune_expired(state.active_boosts, now)
    if any(active.id == boost_id for active in state.active_boosts):
        return ActionResult.rejected(RejectReason.BOOST_ALREADY_ACTIVE)
    if state.boost_tokens < boost.token_cost:
        return ActionResult.rejected(RejectReason.INSUFFICIENT_TOKENS)

    state.boost_tokens -= boost.token_cost
    state.active_boosts.append(
        ActiveBoost(
            **boost.model_dump(),
            start_time=now,
            end_time=now + timedelta(seconds=boost.duration_seconds),
        )
    )
    logger.info(
        "Boost {} activated for {}s ({} tokens left)",
        boost.id,
        boost.duration_seconds,
        state.boost_tokens,
    )
    return ActionResult(ok=True)
