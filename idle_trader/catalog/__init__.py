"""Static game tables loaded once per process."""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache

from idle_trader.models import Asset, Feature, MarketBoost

from .achievements import ACHIEVEMENTS, Achievement
from .assets import ASSETS
from .boosts import BOOSTS
from .features import FEATURES


class Catalog:
    """Read-only lookup over the asset, feature, achievement and boost tables."""

    def __init__(
        self,
        assets: Iterable[Asset],
        features: Iterable[Feature],
        achievements: Iterable[Achievement],
        boosts: Iterable[MarketBoost],
    ) -> None:
        self.assets: tuple[Asset, ...] = tuple(assets)
        self.features: tuple[Feature, ...] = tuple(features)
        self.achievements: tuple[Achievement, ...] = tuple(achievements)
        self.boosts: tuple[MarketBoost, ...] = tuple(boosts)
        self._assets = {asset.id: asset for asset in self.assets}
        self._achievements = {item.id: item for item in self.achievements}
        self._boosts = {boost.id: boost for boost in self.boosts}
        if len(self._assets) != len(self.assets):
            raise ValueError("Duplicate asset ids in catalog")
        if len(self._achievements) != len(self.achievements):
            raise ValueError("Duplicate achievement ids in catalog")
        if len(self._boosts) != len(self.boosts):
            raise ValueError("Duplicate boost ids in catalog")

    def asset(self, asset_id: str) -> Asset | None:
        return self._assets.get(asset_id)

    def achievement(self, achievement_id: str) -> Achievement | None:
        return self._achievements.get(achievement_id)

    def boost(self, boost_id: str) -> MarketBoost | None:
        return self._boosts.get(boost_id)


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    """Build the process-wide catalog from the bundled tables."""
    return Catalog(ASSETS, FEATURES, ACHIEVEMENTS, BOOSTS)


__all__ = [
    "ACHIEVEMENTS",
    "ASSETS",
    "BOOSTS",
    "FEATURES",
    "Achievement",
    "Catalog",
    "default_catalog",
]
