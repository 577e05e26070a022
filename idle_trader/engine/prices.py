"""Price engine: mean-reverting bounded random walk per asset."""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from idle_trader.core import constants
from idle_trader.engine.boosts import active_multiplier
from idle_trader.models import ActiveBoost, Asset, AssetRuntimeState, BoostKind, PricePoint

if TYPE_CHECKING:
    from idle_trader.catalog import Catalog
    from idle_trader.core.config import GameConfig


@dataclass(frozen=True, slots=True)
class PriceModel:
    """Tuning for the per-tick price step.

    ``shock_probability`` enables the optional market-shock policy: with that
    probability an asset jumps part of the way toward its ceiling instead of
    taking the normal step. It is 0 (disabled) by default.
    """

    mean_reversion_strength: float = constants.MEAN_REVERSION_STRENGTH
    floor_ratio: float = constants.PRICE_FLOOR_RATIO
    ceiling_ratio: float = constants.PRICE_CEILING_RATIO
    history_limit: int = constants.PRICE_HISTORY_LIMIT
    shock_probability: float = constants.SHOCK_PROBABILITY
    shock_min_fraction: float = constants.SHOCK_MIN_FRACTION
    shock_max_fraction: float = constants.SHOCK_MAX_FRACTION

    @classmethod
    def from_config(cls, config: GameConfig) -> PriceModel:
        return cls(
            mean_reversion_strength=config.mean_reversion_strength,
            floor_ratio=config.price_floor_ratio,
            ceiling_ratio=config.price_ceiling_ratio,
            history_limit=config.price_history_limit,
            shock_probability=config.shock_probability,
            shock_min_fraction=config.shock_min_fraction,
            shock_max_fraction=config.shock_max_fraction,
        )

    def floor(self, asset: Asset) -> float:
        return asset.base_price * self.floor_ratio

    def ceiling(self, asset: Asset) -> float:
        return asset.base_price * self.ceiling_ratio


def next_price(
    asset: Asset,
    current_price: float,
    *,
    rng: random.Random,
    model: PriceModel,
    volatility_multiplier: float = 1.0,
) -> float:
    """Compute one price step for ``asset`` clamped to its floor and ceiling."""
    if model.shock_probability > 0 and rng.random() < model.shock_probability:
        jump = rng.uniform(model.shock_min_fraction, model.shock_max_fraction)
        total_change = (model.ceiling(asset) / current_price - 1.0) * jump
        logger.debug("Market shock on {}: {:+.2%}", asset.id, total_change)
    else:
        deviation = (current_price - asset.base_price) / asset.base_price
        mean_reversion_pull = -deviation * model.mean_reversion_strength
        random_change = rng.uniform(-1.0, 1.0) * asset.volatility * volatility_multiplier
        total_change = random_change + mean_reversion_pull

    proposed = current_price * (1.0 + total_change)
    return min(model.ceiling(asset), max(model.floor(asset), proposed))


def push_history(
    history: Sequence[PricePoint], point: PricePoint, limit: int
) -> list[PricePoint]:
    """Prepend ``point`` and evict the oldest samples beyond ``limit``."""
    return [point, *history][:limit]


def advance_prices(
    states: Iterable[AssetRuntimeState],
    catalog: Catalog,
    active_boosts: Iterable[ActiveBoost],
    *,
    now: datetime,
    rng: random.Random,
    model: PriceModel | None = None,
) -> list[AssetRuntimeState]:
    """Advance every asset by one tick and return the new runtime states.

    States for ids missing from the catalog are passed through untouched.
    """
    model = model or PriceModel()
    volatility_multiplier = active_multiplier(active_boosts, BoostKind.PRICE_VOLATILITY, now)

    advanced: list[AssetRuntimeState] = []
    for state in states:
        asset = catalog.asset(state.asset_id)
        if asset is None:
            advanced.append(state)
            continue
        new_price = next_price(
            asset,
            state.current_price,
            rng=rng,
            model=model,
            volatility_multiplier=volatility_multiplier,
        )
        advanced.append(
            AssetRuntimeState(
                asset_id=state.asset_id,
                current_price=new_price,
                price_history=push_history(
                    state.price_history,
                    PricePoint(price=state.current_price, timestamp=now),
                    model.history_limit,
                ),
            )
        )
    return advanced
