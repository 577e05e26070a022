"""Tests for gateways, document repair and the debounced writer."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from idle_trader.catalog import Catalog
from idle_trader.core.config import GameConfig
from idle_trader.core.telemetry import TelemetryReporter
from idle_trader.errors import PersistenceError
from idle_trader.models import GameState
from idle_trader.persistence import (
    GameRepository,
    InMemoryGateway,
    JsonFileGateway,
    WriteCoalescer,
    new_game_state,
    sanitize_document,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class FlakyGateway(InMemoryGateway):
    """In-memory gateway whose saves fail until ``healthy`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.healthy = False

    async def save(self, user_id: str, patch: Mapping[str, Any]) -> None:
        if not self.healthy:
            raise PersistenceError("store offline", user_id=user_id)
        await super().save(user_id, patch)


class BrokenGateway:
    async def load(self, user_id: str) -> dict[str, Any] | None:
        raise ConnectionError("network down")

    async def save(self, user_id: str, patch: Mapping[str, Any]) -> None:
        raise ConnectionError("network down")


# Document repair


def test_nan_prices_fall_back_to_base_price(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    document = state.to_document()
    document["assets"][0]["current_price"] = float("nan")
    document["assets"][0]["price_history"] = [
        {"price": float("inf"), "timestamp": NOW.isoformat()},
        {"price": 101.5, "timestamp": (NOW - timedelta(seconds=3)).isoformat()},
    ]
    document["assets"][1]["current_price"] = -4

    repaired = sanitize_document(document, catalog, config, NOW)

    tech = repaired.asset_state("tech1")
    assert tech is not None
    assert tech.current_price == pytest.approx(100.0)
    assert [point.price for point in tech.price_history] == [100.0, 101.5]
    retail = repaired.asset_state("retail1")
    assert retail is not None
    assert retail.current_price == pytest.approx(45.0)


def test_missing_assets_are_restored_and_unknown_ones_dropped(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    document = state.to_document()
    document["assets"] = [{"asset_id": "delisted", "current_price": 5.0}]

    repaired = sanitize_document(document, catalog, config, NOW)

    assert [asset.asset_id for asset in repaired.assets] == [asset.id for asset in catalog.assets]


def test_invalid_cash_and_tokens_are_reset(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    document = state.to_document()
    document["portfolio"]["cash"] = float("nan")
    document["boost_tokens"] = -5

    repaired = sanitize_document(document, catalog, config, NOW)

    assert repaired.portfolio.cash == pytest.approx(config.starting_cash)
    assert repaired.boost_tokens == 0


def test_bad_entries_are_dropped_not_fatal(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    document = state.to_document()
    document["orders"] = [
        {"id": "a", "asset_id": "tech1", "side": "buy", "quantity": 1, "target_price": 90.0},
        {"id": "b", "asset_id": "tech1", "side": "buy", "quantity": -1, "target_price": 90.0},
        {"id": "c", "asset_id": "delisted", "side": "sell", "quantity": 1, "target_price": 9.0},
        "garbage",
    ]
    document["portfolio"]["holdings"] = [
        {"asset_id": "tech1", "quantity": 4, "average_price": float("nan")},
        {"asset_id": "gold", "quantity": 0, "average_price": 1_900.0},
    ]

    repaired = sanitize_document(document, catalog, config, NOW)

    assert [order.id for order in repaired.orders] == ["a"]
    [holding] = repaired.portfolio.holdings
    assert holding.asset_id == "tech1"
    assert holding.average_price == pytest.approx(100.0)


def test_xp_derived_fields_are_recomputed(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    document = state.to_document()
    document["xp_stats"] = {
        "level": 3,
        "current_xp": float("nan"),
        "xp_to_next_level": 1,
        "idle_bonus": 99,
        "unlocked_features": [],
    }

    repaired = sanitize_document(document, catalog, config, NOW)

    stats = repaired.xp_stats
    assert stats.level == 3
    assert stats.current_xp == 0.0
    assert stats.xp_to_next_level == pytest.approx(4_000)
    assert stats.idle_bonus == pytest.approx(0.006)
    assert stats.has_feature("Market Trends")


def test_expired_boosts_are_pruned_on_load(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    document = state.to_document()
    boost = catalog.boost("xp_rush")
    assert boost is not None
    expired = {
        **boost.model_dump(mode="json"),
        "start_time": (NOW - timedelta(hours=1)).isoformat(),
        "end_time": (NOW - timedelta(minutes=58)).isoformat(),
    }
    running = {
        **boost.model_dump(mode="json"),
        "id": "xp_rush_2",
        "start_time": NOW.isoformat(),
        "end_time": (NOW + timedelta(minutes=2)).isoformat(),
    }
    document["active_boosts"] = [expired, running]

    repaired = sanitize_document(document, catalog, config, NOW)

    assert [active.id for active in repaired.active_boosts] == ["xp_rush_2"]


def test_clean_document_survives_unchanged(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    repaired = sanitize_document(state.to_document(), catalog, config, NOW)

    assert repaired.to_document() == state.to_document()


# Gateways and repository


@pytest.mark.asyncio
async def test_in_memory_gateway_merges_patches_per_field() -> None:
    gateway = InMemoryGateway()

    await gateway.save("u1", {"boost_tokens": 3, "orders": []})
    await gateway.save("u1", {"boost_tokens": 5})

    assert await gateway.load("u1") == {"boost_tokens": 5, "orders": []}
    assert await gateway.load("u2") is None


@pytest.mark.asyncio
async def test_json_file_gateway_round_trip(tmp_path: Path) -> None:
    gateway = JsonFileGateway(tmp_path)

    await gateway.save("player/1", {"boost_tokens": 4})
    await gateway.save("player/1", {"portfolio": {"cash": float("nan"), "holdings": []}})

    path = gateway.path_for("player/1")
    assert path.parent == tmp_path
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {"boost_tokens": 4, "portfolio": {"cash": None, "holdings": []}}
    assert await gateway.load("player/1") == raw


@pytest.mark.asyncio
async def test_json_file_gateway_reports_corrupt_files(tmp_path: Path) -> None:
    gateway = JsonFileGateway(tmp_path)
    gateway.path_for("bad").write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        await gateway.load("bad")


@pytest.mark.asyncio
async def test_save_replaces_an_unreadable_file(
    tmp_path: Path, catalog: Catalog, config: GameConfig
) -> None:
    gateway = JsonFileGateway(tmp_path)
    gateway.path_for("bad").write_text("{not json", encoding="utf-8")
    state = new_game_state(catalog, config, NOW)
    state.boost_tokens = 5

    await gateway.save("bad", state.to_document())

    stored = await gateway.load("bad")
    assert stored is not None
    assert stored["boost_tokens"] == 5
    assert stored["portfolio"]["cash"] == pytest.approx(config.starting_cash)


@pytest.mark.asyncio
async def test_repository_initializes_missing_player(
    catalog: Catalog, config: GameConfig
) -> None:
    gateway = InMemoryGateway()
    repository = GameRepository(gateway, catalog, config)

    state = await repository.load("newbie", now=NOW)

    assert state.portfolio.cash == pytest.approx(config.starting_cash)
    assert state.unlocked_assets == [config.starting_asset]
    assert gateway.documents["newbie"]["portfolio"]["cash"] == config.starting_cash


@pytest.mark.asyncio
async def test_repository_sanitizes_stored_document(
    catalog: Catalog, config: GameConfig, state: GameState
) -> None:
    document = state.to_document()
    document["assets"][0]["current_price"] = float("nan")
    repository = GameRepository(InMemoryGateway({"p": document}), catalog, config)

    loaded = await repository.load("p", now=NOW)

    assert loaded.current_price("tech1") == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_repository_wraps_gateway_failures(catalog: Catalog, config: GameConfig) -> None:
    repository = GameRepository(BrokenGateway(), catalog, config)

    with pytest.raises(PersistenceError) as excinfo:
        await repository.load("p", now=NOW)
    assert excinfo.value.user_id == "p"

    with pytest.raises(PersistenceError):
        await repository.save("p", {"boost_tokens": 1})


# Debounced writer


@pytest.mark.asyncio
async def test_bursts_are_coalesced_into_one_write() -> None:
    gateway = InMemoryGateway()
    coalescer = WriteCoalescer(gateway.save, delay_seconds=0.02)

    coalescer.schedule("u", {"boost_tokens": 1})
    coalescer.schedule("u", {"boost_tokens": 2, "orders": []})
    coalescer.schedule("u", {"unlocked_assets": ["tech1"]})
    assert gateway.save_calls == 0

    await asyncio.sleep(0.1)

    assert gateway.save_calls == 1
    assert gateway.documents["u"] == {
        "boost_tokens": 2,
        "orders": [],
        "unlocked_assets": ["tech1"],
    }
    assert not coalescer.has_pending("u")


@pytest.mark.asyncio
async def test_force_save_bypasses_the_timer() -> None:
    gateway = InMemoryGateway()
    coalescer = WriteCoalescer(gateway.save, delay_seconds=60)

    coalescer.schedule("u", {"boost_tokens": 7})
    assert await coalescer.force_save("u") is True
    assert gateway.documents["u"] == {"boost_tokens": 7}
    assert await coalescer.force_save("u") is False

    await coalescer.close()
    assert gateway.save_calls == 1


@pytest.mark.asyncio
async def test_failed_write_stays_pending_for_retry(tmp_path: Path) -> None:
    gateway = FlakyGateway()
    telemetry_path = tmp_path / "telemetry.jsonl"
    telemetry = TelemetryReporter(file_path=telemetry_path)
    coalescer = WriteCoalescer(gateway.save, delay_seconds=60, telemetry=telemetry)

    coalescer.schedule("u", {"boost_tokens": 1})
    with pytest.raises(PersistenceError):
        await coalescer.force_save("u")

    assert coalescer.retry_available
    assert isinstance(coalescer.last_error, PersistenceError)
    record = json.loads(telemetry_path.read_text(encoding="utf-8").splitlines()[0])
    assert record["kind"] == "persistence.save_failed"
    assert record["details"] == {"fields": "boost_tokens", "attempt": 1}

    coalescer.schedule("u", {"orders": []})
    gateway.healthy = True
    await coalescer.retry()

    assert gateway.documents["u"] == {"boost_tokens": 1, "orders": []}
    assert coalescer.last_error is None
    assert not coalescer.retry_available
    assert telemetry.failed_saves("u") == 0
    assert [event.kind.value for event in telemetry.recent] == [
        "persistence.save_failed",
        "persistence.save_recovered",
    ]


@pytest.mark.asyncio
async def test_newer_fields_win_over_failed_patch() -> None:
    gateway = FlakyGateway()
    coalescer = WriteCoalescer(gateway.save, delay_seconds=60)

    coalescer.schedule("u", {"boost_tokens": 1})
    with pytest.raises(PersistenceError):
        await coalescer.force_save("u")
    coalescer.schedule("u", {"boost_tokens": 9})
    gateway.healthy = True
    await coalescer.close()

    assert gateway.documents["u"] == {"boost_tokens": 9}


def test_new_game_state_is_valid(catalog: Catalog, config: GameConfig) -> None:
    state = new_game_state(catalog, config, NOW)

    assert GameState.model_validate(state.to_document()) == state
