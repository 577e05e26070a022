"""Idle Trader - an idle trading game simulation core."""

__version__ = "0.1.0"

from idle_trader.catalog import Catalog, default_catalog
from idle_trader.core.config import GameConfig, load_config
from idle_trader.core.events import EventBus, EventTopic
from idle_trader.errors import GameStateCorruptError, IdleTraderError, PersistenceError
from idle_trader.models import (
    ActionResult,
    Asset,
    GameState,
    Order,
    OrderSide,
    RejectReason,
    Transaction,
    TransactionStatus,
)
from idle_trader.persistence import GameRepository, InMemoryGateway, JsonFileGateway
from idle_trader.scheduler import TickScheduler
from idle_trader.session import GameSession

__all__ = [
    "Catalog",
    "default_catalog",
    "GameConfig",
    "load_config",
    "EventBus",
    "EventTopic",
    "IdleTraderError",
    "PersistenceError",
    "GameStateCorruptError",
    "ActionResult",
    "Asset",
    "GameState",
    "Order",
    "OrderSide",
    "RejectReason",
    "Transaction",
    "TransactionStatus",
    "GameRepository",
    "InMemoryGateway",
    "JsonFileGateway",
    "GameSession",
    "TickScheduler",
]
