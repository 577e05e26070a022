"""Load and save game states through a persistence gateway."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from loguru import logger

from idle_trader.catalog import Catalog
from idle_trader.core.config import GameConfig
from idle_trader.errors import PersistenceError
from idle_trader.models import GameState
from idle_trader.persistence.documents import new_game_state, sanitize_document
from idle_trader.persistence.gateway import PersistenceGateway


class GameRepository:
    """Typed access to the document store.

    Loading a user without a document creates and stores the default game.
    Every loaded document is sanitized before use.
    """

    def __init__(self, gateway: PersistenceGateway, catalog: Catalog, config: GameConfig) -> None:
        self.gateway = gateway
        self._catalog = catalog
        self._config = config

    async def load(self, user_id: str, *, now: datetime) -> GameState:
        document = await self._call(self.gateway.load(user_id), user_id, "load")
        if document is None:
            state = new_game_state(self._catalog, self._config, now)
            await self.save(user_id, state.to_document())
            logger.info("Initialized new game for {}", user_id)
            return state
        state = sanitize_document(document, self._catalog, self._config, now)
        logger.info("Loaded game for {} (level {})", user_id, state.xp_stats.level)
        return state

    async def save(self, user_id: str, patch: Mapping[str, Any]) -> None:
        await self._call(self.gateway.save(user_id, patch), user_id, "save")

    @staticmethod
    async def _call(awaitable: Any, user_id: str, action: str) -> Any:
        try:
            return await awaitable
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(
                f"Gateway {action} failed for {user_id}: {exc}", user_id=user_id
            ) from exc
