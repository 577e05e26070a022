"""Game state models using Pydantic v2."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(UTC)


class AssetCategory(str, Enum):
    """Asset category enumeration."""

    STOCK = "stock"
    COMMODITY = "commodity"
    CRYPTO = "crypto"


class OrderSide(str, Enum):
    """Order side enumeration."""

    BUY = "buy"
    SELL = "sell"


class TransactionStatus(str, Enum):
    """Terminal status of a transaction record."""

    FILLED = "filled"
    CANCELLED = "cancelled"


class FeatureKind(str, Enum):
    IDLE_BONUS = "idle_bonus"
    MARKET_INSIGHT = "market_insight"
    TRADING_FEATURE = "trading_feature"
    IDLE_SPEED = "idle_speed"


class BoostKind(str, Enum):
    IDLE_SPEED = "idle_speed"
    IDLE_INCOME = "idle_income"
    XP_GAIN = "xp_gain"
    PRICE_VOLATILITY = "price_volatility"


class AchievementCategory(str, Enum):
    PROFIT = "profit"
    LEVEL = "level"
    CASH = "cash"
    PORTFOLIO = "portfolio"
    TRADING = "trading"


class Asset(BaseModel):
    """Tradable asset definition from the static catalog."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Catalog identifier")
    name: str
    symbol: str = Field(..., description="Ticker symbol")
    base_price: Annotated[float, Field(gt=0, description="Long-run mean price")]
    volatility: Annotated[float, Field(ge=0, le=1, description="Max relative move per tick")]
    category: AssetCategory
    unlock_price: Annotated[float, Field(ge=0, description="Net worth required to trade")]
    description: str = ""

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Ensure symbol is uppercase and non-empty."""
        if not v:
            raise ValueError("Symbol cannot be empty")
        return v.upper().strip()


class PricePoint(BaseModel):
    """Historical price sample."""

    price: float
    timestamp: datetime


class AssetRuntimeState(BaseModel):
    """Live price state for one catalog asset.

    ``price_history`` is newest-first and bounded by the price engine.
    """

    asset_id: str
    current_price: Annotated[float, Field(gt=0)]
    price_history: list[PricePoint] = Field(default_factory=list)


class Holding(BaseModel):
    """Quantity of an asset held and its weighted-average cost basis."""

    asset_id: str
    quantity: Annotated[int, Field(ge=0)]
    average_price: Annotated[float, Field(ge=0)]


class Portfolio(BaseModel):
    """Cash balance plus holdings keyed by asset id."""

    cash: float
    holdings: list[Holding] = Field(default_factory=list)

    def holding(self, asset_id: str) -> Holding | None:
        for holding in self.holdings:
            if holding.asset_id == asset_id:
                return holding
        return None


class Order(BaseModel):
    """Open conditional order that fills once price crosses its target."""

    id: str
    asset_id: str
    side: OrderSide
    quantity: Annotated[int, Field(gt=0, description="Order quantity (must be positive)")]
    target_price: Annotated[float, Field(gt=0)]
    created_at: datetime = Field(default_factory=utc_now)


class Transaction(BaseModel):
    """Immutable record of a filled or cancelled trade."""

    model_config = ConfigDict(frozen=True)

    id: str
    asset_id: str
    side: OrderSide
    quantity: int
    price: float
    timestamp: datetime
    status: TransactionStatus = TransactionStatus.FILLED


class Feature(BaseModel):
    """Level-gated feature. ``bonus`` is the idle rate increment of idle_bonus rows."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    level_required: Annotated[int, Field(ge=1)]
    kind: FeatureKind
    bonus: float = 0.0


class XPStats(BaseModel):
    """Experience, level and unlocked features of a player."""

    level: Annotated[int, Field(ge=1)] = 1
    current_xp: Annotated[float, Field(ge=0)] = 0.0
    xp_to_next_level: Annotated[float, Field(gt=0)]
    idle_bonus: float = 0.0
    unlocked_features: list[Feature] = Field(default_factory=list)

    def has_feature(self, name: str) -> bool:
        return any(feature.name == name for feature in self.unlocked_features)


class AchievementProgress(BaseModel):
    id: str
    unlocked: bool = False
    reward_claimed: bool = False
    unlocked_at: datetime | None = None


class MarketBoost(BaseModel):
    """Purchasable, time-boxed multiplier."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    kind: BoostKind
    multiplier: Annotated[float, Field(gt=0)]
    duration_seconds: Annotated[float, Field(gt=0)]
    token_cost: Annotated[int, Field(ge=0)]


class ActiveBoost(MarketBoost):
    """A purchased boost together with its activation window."""

    start_time: datetime
    end_time: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.end_time <= now


class GameState(BaseModel):
    """Root aggregate and unit of persistence for one player."""

    portfolio: Portfolio
    transactions: list[Transaction] = Field(default_factory=list)
    last_update: datetime = Field(default_factory=utc_now)
    unlocked_assets: list[str] = Field(default_factory=list)
    xp_stats: XPStats
    assets: list[AssetRuntimeState] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)
    achievements: list[AchievementProgress] = Field(default_factory=list)
    boost_tokens: Annotated[int, Field(ge=0)] = 0
    active_boosts: list[ActiveBoost] = Field(default_factory=list)

    def asset_state(self, asset_id: str) -> AssetRuntimeState | None:
        for asset in self.assets:
            if asset.asset_id == asset_id:
                return asset
        return None

    def current_price(self, asset_id: str) -> float | None:
        asset = self.asset_state(asset_id)
        return asset.current_price if asset is not None else None

    def achievement(self, achievement_id: str) -> AchievementProgress | None:
        for progress in self.achievements:
            if progress.id == achievement_id:
                return progress
        return None

    def to_document(self) -> dict[str, Any]:
        """Serialize into the JSON-compatible document shape used by gateways."""
        return self.model_dump(mode="json")


PERSISTED_FIELDS: tuple[str, ...] = tuple(GameState.model_fields)


class RejectReason(str, Enum):
    """Why a user operation was rejected without changing state."""

    INVALID_QUANTITY = "invalid_quantity"
    INVALID_PRICE = "invalid_price"
    UNKNOWN_ASSET = "unknown_asset"
    ASSET_LOCKED = "asset_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_HOLDINGS = "insufficient_holdings"
    UNKNOWN_ORDER = "unknown_order"
    UNKNOWN_ACHIEVEMENT = "unknown_achievement"
    ACHIEVEMENT_LOCKED = "achievement_locked"
    REWARD_ALREADY_CLAIMED = "reward_already_claimed"
    UNKNOWN_BOOST = "unknown_boost"
    INSUFFICIENT_TOKENS = "insufficient_tokens"
    BOOST_ALREADY_ACTIVE = "boost_already_active"


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of a state transition requested by the player."""

    ok: bool
    reason: RejectReason | None = None
    transaction: Transaction | None = None
    order: Order | None = None
    realized_profit: float = 0.0

    @classmethod
    def rejected(cls, reason: RejectReason) -> ActionResult:
        return cls(ok=False, reason=reason)

    def __bool__(self) -> bool:
        return self.ok
