"""Persistence: gateways, document repair and debounced writes."""

from .coalescer import WriteCoalescer
from .documents import new_game_state, sanitize_document
from .gateway import InMemoryGateway, JsonFileGateway, PersistenceGateway
from .repository import GameRepository

__all__ = [
    "GameRepository",
    "InMemoryGateway",
    "JsonFileGateway",
    "PersistenceGateway",
    "WriteCoalescer",
    "new_game_state",
    "sanitize_document",
]
