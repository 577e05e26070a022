"""Core infrastructure modules for Idle Trader."""

from .config import GameConfig, load_config
from .events import (
    AchievementEvent,
    BoostEvent,
    DiagnosticEvent,
    DiagnosticKind,
    EventBus,
    EventSubscription,
    EventTopic,
    IdleIncomeEvent,
    OrderAction,
    OrderEvent,
    PriceTickEvent,
    ProgressionEvent,
    TradeEvent,
)
from .telemetry import TelemetryReporter

__all__ = [
    "GameConfig",
    "load_config",
    "EventBus",
    "EventTopic",
    "EventSubscription",
    "PriceTickEvent",
    "TradeEvent",
    "OrderAction",
    "OrderEvent",
    "ProgressionEvent",
    "AchievementEvent",
    "BoostEvent",
    "IdleIncomeEvent",
    "DiagnosticEvent",
    "DiagnosticKind",
    "TelemetryReporter",
]
