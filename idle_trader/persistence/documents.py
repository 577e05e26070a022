"""Default game creation and repair of stored game documents."""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, TypeAdapter, ValidationError

from idle_trader.catalog import Catalog
from idle_trader.core.config import GameConfig
from idle_trader.engine.boosts import prune_expired
from idle_trader.engine.progression import base_idle_bonus, features_up_to, xp_to_next_level
from idle_trader.errors import GameStateCorruptError
from idle_trader.models import (
    AchievementProgress,
    ActiveBoost,
    AssetRuntimeState,
    Feature,
    GameState,
    Holding,
    Order,
    Portfolio,
    PricePoint,
    Transaction,
    XPStats,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

_TIMESTAMP = TypeAdapter(datetime)


def new_game_state(catalog: Catalog, config: GameConfig, now: datetime) -> GameState:
    """Fresh player: starting cash, one unlocked asset, level 1."""
    features = features_up_to(catalog.features, 1)
    return GameState(
        portfolio=Portfolio(cash=config.starting_cash),
        last_update=now,
        unlocked_assets=[config.starting_asset],
        xp_stats=XPStats(
            level=1,
            current_xp=0.0,
            xp_to_next_level=xp_to_next_level(1, config.xp_per_level),
            idle_bonus=base_idle_bonus(
                features, base_rate=config.idle_base_rate, cap=config.idle_bonus_cap
            ),
            unlocked_features=features,
        ),
        assets=[
            AssetRuntimeState(asset_id=asset.id, current_price=asset.base_price)
            for asset in catalog.assets
        ],
    )


def _finite(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def _positive(value: Any) -> float | None:
    number = _finite(value)
    return number if number is not None and number > 0 else None


def _valid_items(raw: Any, model: type[ModelT], label: str) -> list[ModelT]:
    if not isinstance(raw, list):
        return []
    items: list[ModelT] = []
    for entry in raw:
        try:
            items.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Dropping invalid {} entry: {}", label, exc.errors()[0]["msg"])
    return items


def _sanitize_assets(raw: Any, catalog: Catalog, history_limit: int) -> list[AssetRuntimeState]:
    saved: dict[str, Mapping[str, Any]] = {}
    if isinstance(raw, list):
        for entry in raw:
            if isinstance(entry, Mapping) and isinstance(entry.get("asset_id"), str):
                saved[entry["asset_id"]] = entry

    assets: list[AssetRuntimeState] = []
    for asset in catalog.assets:
        entry = saved.get(asset.id, {})
        price = _positive(entry.get("current_price"))
        if price is None:
            if entry:
                logger.warning(
                    "Invalid stored price for {}: {!r}, using base price {}",
                    asset.id,
                    entry.get("current_price"),
                    asset.base_price,
                )
            price = asset.base_price

        history: list[PricePoint] = []
        raw_history = entry.get("price_history")
        for point in raw_history if isinstance(raw_history, list) else []:
            if not isinstance(point, Mapping) or point.get("timestamp") is None:
                continue
            point_price = _positive(point.get("price"))
            if point_price is None:
                logger.warning("Invalid history sample for {}, using base price", asset.id)
                point_price = asset.base_price
            try:
                history.append(PricePoint(price=point_price, timestamp=point["timestamp"]))
            except ValidationError:
                continue
        assets.append(
            AssetRuntimeState(
                asset_id=asset.id,
                current_price=price,
                price_history=history[:history_limit],
            )
        )
    return assets


def _sanitize_portfolio(raw: Any, starting_cash: float, state: GameState) -> Portfolio:
    raw = raw if isinstance(raw, Mapping) else {}
    cash = _finite(raw.get("cash"))
    if cash is None or cash < 0:
        logger.warning(
            "Invalid stored cash {!r}, resetting to {}", raw.get("cash"), starting_cash
        )
        cash = starting_cash

    holdings: dict[str, Holding] = {}
    for entry in raw.get("holdings") or []:
        if not isinstance(entry, Mapping):
            continue
        asset_id = entry.get("asset_id")
        quantity = entry.get("quantity")
        if asset_id is None or state.asset_state(asset_id) is None:
            continue
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            continue
        average_price = _finite(entry.get("average_price"))
        if average_price is None or average_price < 0:
            average_price = state.current_price(asset_id) or 0.0
        existing = holdings.get(asset_id)
        if existing is None:
            holdings[asset_id] = Holding(
                asset_id=asset_id, quantity=quantity, average_price=average_price
            )
        else:
            total = existing.quantity + quantity
            existing.average_price = (
                existing.average_price * existing.quantity + average_price * quantity
            ) / total
            existing.quantity = total
    return Portfolio(cash=cash, holdings=list(holdings.values()))


def _sanitize_xp(raw: Any, catalog: Catalog, config: GameConfig) -> XPStats:
    raw = raw if isinstance(raw, Mapping) else {}
    level = raw.get("level")
    if not isinstance(level, int) or isinstance(level, bool) or level < 1:
        level = 1
    needed = xp_to_next_level(level, config.xp_per_level)
    current_xp = _finite(raw.get("current_xp"))
    if current_xp is None or current_xp < 0:
        current_xp = 0.0
    current_xp = min(current_xp, needed - 1)

    by_name = {feature.name: feature for feature in catalog.features}
    stored = _valid_items(raw.get("unlocked_features"), Feature, "feature")
    unlocked: list[Feature] = []
    for feature in stored:
        resolved = by_name.get(feature.name, feature)
        if all(existing.name != resolved.name for existing in unlocked):
            unlocked.append(resolved)
    unlocked.extend(features_up_to(catalog.features, level, unlocked))

    return XPStats(
        level=level,
        current_xp=current_xp,
        xp_to_next_level=needed,
        idle_bonus=base_idle_bonus(
            unlocked, base_rate=config.idle_base_rate, cap=config.idle_bonus_cap
        ),
        unlocked_features=unlocked,
    )


def sanitize_document(
    document: Mapping[str, Any],
    catalog: Catalog,
    config: GameConfig,
    now: datetime,
) -> GameState:
    """Rebuild a valid ``GameState`` from a stored document.

    Non-finite or non-positive prices (current and historical) fall back to
    the catalog base price, invalid list entries are dropped, derived XP
    fields are recomputed and expired boosts are pruned. Corruption is
    repaired and logged, never raised; only a document that still cannot be
    validated raises ``GameStateCorruptError``.
    """
    state = new_game_state(catalog, config, now)
    state.assets = _sanitize_assets(document.get("assets"), catalog, config.price_history_limit)
    state.portfolio = _sanitize_portfolio(document.get("portfolio"), config.starting_cash, state)
    state.xp_stats = _sanitize_xp(document.get("xp_stats"), catalog, config)
    state.transactions = _valid_items(document.get("transactions"), Transaction, "transaction")
    state.orders = [
        order
        for order in _valid_items(document.get("orders"), Order, "order")
        if catalog.asset(order.asset_id) is not None
    ]
    state.achievements = [
        progress
        for progress in _valid_items(
            document.get("achievements"), AchievementProgress, "achievement"
        )
        if catalog.achievement(progress.id) is not None
    ]
    state.active_boosts = prune_expired(
        _valid_items(document.get("active_boosts"), ActiveBoost, "boost"), now
    )

    tokens = document.get("boost_tokens")
    if isinstance(tokens, int) and not isinstance(tokens, bool) and tokens >= 0:
        state.boost_tokens = tokens
    elif tokens is not None:
        logger.warning("Invalid stored boost tokens {!r}, resetting to 0", tokens)

    unlocked_assets = document.get("unlocked_assets")
    if isinstance(unlocked_assets, list):
        for asset_id in unlocked_assets:
            if (
                isinstance(asset_id, str)
                and catalog.asset(asset_id) is not None
                and asset_id not in state.unlocked_assets
            ):
                state.unlocked_assets.append(asset_id)

    last_update = document.get("last_update")
    if last_update is not None:
        try:
            state.last_update = _TIMESTAMP.validate_python(last_update)
        except ValidationError:
            logger.warning("Invalid stored last_update {!r}, using now", last_update)

    try:
        return GameState.model_validate(state.model_dump())
    except ValidationError as exc:
        raise GameStateCorruptError(f"Stored game state cannot be repaired: {exc}") from exc
