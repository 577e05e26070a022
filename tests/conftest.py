"""Pytest configuration for shared fixtures."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from loguru import logger

from idle_trader.catalog import Catalog, default_catalog
from idle_trader.core.config import GameConfig
from idle_trader.models import GameState
from idle_trader.persistence import new_game_state

START = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock injected into sessions."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture(scope="session", autouse=True)
def silence_loguru_handlers() -> None:
    """Route Loguru output to a no-op sink during tests to avoid closed stream errors."""
    logger.remove()
    logger.add(lambda _: None, catch=True)
    yield


@pytest.fixture
def catalog() -> Catalog:
    return default_catalog()


@pytest.fixture
def config(tmp_path: Path) -> GameConfig:
    return GameConfig(
        _env_file=None,
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        rng_seed=7,
        save_debounce_seconds=0.01,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def state(catalog: Catalog, config: GameConfig) -> GameState:
    return new_game_state(catalog, config, START)
