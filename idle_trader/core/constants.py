"""Common constants shared across the game simulation."""

from __future__ import annotations

from pathlib import Path

STARTING_CASH = 10_000.0
STARTING_ASSET_ID = "tech1"

PRICE_HISTORY_LIMIT = 30
PRICE_TICK_SECONDS = 3.0
MEAN_REVERSION_STRENGTH = 0.1
PRICE_FLOOR_RATIO = 0.2
PRICE_CEILING_RATIO = 10.0
SHOCK_PROBABILITY = 0.0
SHOCK_MIN_FRACTION = 0.1
SHOCK_MAX_FRACTION = 0.3

XP_DIVISOR = 10.0
XP_PER_LEVEL = 1000

IDLE_BASE_RATE = 0.001
IDLE_BONUS_CAP = 0.25
IDLE_BASE_INTERVAL_SECONDS = 30.0
IDLE_INTERVAL_REDUCTION_SECONDS = 5.0
IDLE_MIN_INTERVAL_SECONDS = 5.0

SAVE_DEBOUNCE_SECONDS = 5.0

DEFAULT_DATA_DIR = Path("data")
DEFAULT_LOG_DIR = Path("logs")
DEFAULT_USER_ID = "local"

EVENT_QUEUE_SIZE = 1_000
