"""Configuration management for Idle Trader."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from idle_trader.core import constants


class GameConfig(BaseSettings):
    """Simulation tuning and runtime settings.

    Uses Pydantic v2 settings with environment variable support.
    """

    model_config = SettingsConfigDict(
        env_prefix="IDLE_TRADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Player defaults
    starting_cash: float = Field(
        default=constants.STARTING_CASH, gt=0, description="Cash granted to a new player"
    )
    starting_asset: str = Field(
        default=constants.STARTING_ASSET_ID, description="Asset unlocked for a new player"
    )
    enforce_asset_unlocks: bool = Field(
        default=True,
        description="Reject buys of assets the player has not unlocked yet",
    )

    # Price engine
    price_tick_seconds: float = Field(
        default=constants.PRICE_TICK_SECONDS, gt=0, description="Seconds between price ticks"
    )
    price_history_limit: int = Field(
        default=constants.PRICE_HISTORY_LIMIT, gt=0, description="Price samples kept per asset"
    )
    mean_reversion_strength: float = Field(
        default=constants.MEAN_REVERSION_STRENGTH,
        ge=0,
        description="Fraction of the deviation from base price pulled back each tick",
    )
    price_floor_ratio: float = Field(
        default=constants.PRICE_FLOOR_RATIO, gt=0, description="Minimum price as base multiple"
    )
    price_ceiling_ratio: float = Field(
        default=constants.PRICE_CEILING_RATIO, gt=0, description="Maximum price as base multiple"
    )
    shock_probability: float = Field(
        default=constants.SHOCK_PROBABILITY,
        description="Per-asset chance of a market shock each tick (0 disables shocks)",
    )
    shock_min_fraction: float = Field(default=constants.SHOCK_MIN_FRACTION, gt=0, le=1)
    shock_max_fraction: float = Field(default=constants.SHOCK_MAX_FRACTION, gt=0, le=1)
    rng_seed: int | None = Field(
        default=None, description="Seed for the price random walk (None for system entropy)"
    )

    # Progression
    xp_divisor: float = Field(
        default=constants.XP_DIVISOR, gt=0, description="Realized profit per XP point"
    )
    xp_per_level: int = Field(
        default=constants.XP_PER_LEVEL, gt=0, description="Linear XP curve step"
    )
    idle_base_rate: float = Field(default=constants.IDLE_BASE_RATE, ge=0)
    idle_bonus_cap: float = Field(default=constants.IDLE_BONUS_CAP, ge=0)
    idle_base_interval_seconds: float = Field(
        default=constants.IDLE_BASE_INTERVAL_SECONDS, gt=0
    )
    idle_interval_reduction_seconds: float = Field(
        default=constants.IDLE_INTERVAL_REDUCTION_SECONDS, ge=0
    )
    idle_min_interval_seconds: float = Field(default=constants.IDLE_MIN_INTERVAL_SECONDS, gt=0)

    # Persistence
    save_debounce_seconds: float = Field(
        default=constants.SAVE_DEBOUNCE_SECONDS,
        ge=0,
        description="Window used to coalesce bursts of saves into one write",
    )
    user_id: str = Field(default=constants.DEFAULT_USER_ID, description="Player document key")

    # Data paths
    data_dir: Path = Field(
        default=constants.DEFAULT_DATA_DIR, description="Directory for saved games"
    )
    log_dir: Path = Field(default=constants.DEFAULT_LOG_DIR, description="Directory for logs")

    @field_validator("shock_probability")
    @classmethod
    def validate_shock_probability(cls, value: float) -> float:
        """Ensure the shock probability is a probability."""
        if not (0.0 <= value <= 1.0):
            raise ValueError("shock_probability must be between 0 and 1.")
        return value

    @model_validator(mode="after")
    def validate_ranges(self) -> GameConfig:
        if self.price_floor_ratio >= self.price_ceiling_ratio:
            raise ValueError("price_floor_ratio must be below price_ceiling_ratio.")
        if self.shock_min_fraction > self.shock_max_fraction:
            raise ValueError("shock_min_fraction must not exceed shock_max_fraction.")
        if self.idle_min_interval_seconds > self.idle_base_interval_seconds:
            raise ValueError("idle_min_interval_seconds must not exceed the base interval.")
        return self

    def ensure_directories(self) -> None:
        """Create data and log directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)


def load_config() -> GameConfig:
    """Load configuration from environment and .env file."""
    return GameConfig()
