"""CLI tests against a JSON file store in a temporary directory."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from idle_trader import cli
from idle_trader.core.config import GameConfig

runner = CliRunner()


@pytest.fixture
def cli_config(monkeypatch: pytest.MonkeyPatch, config: GameConfig) -> GameConfig:
    monkeypatch.setattr(cli, "load_config", lambda: config)
    monkeypatch.setattr(cli, "setup_logging", lambda *_args, **_kwargs: None)
    return config


def _saved(config: GameConfig) -> dict:
    path = config.data_dir / f"{config.user_id}.json"
    return json.loads(path.read_text(encoding="utf-8"))


def test_status_creates_a_new_game(cli_config: GameConfig) -> None:
    result = runner.invoke(cli.app, ["status"])

    assert result.exit_code == 0, result.stdout
    assert "Cash" in result.stdout
    assert "10,000.00" in result.stdout
    assert _saved(cli_config)["portfolio"]["cash"] == 10_000.0


def test_buy_is_saved_before_exit(cli_config: GameConfig) -> None:
    result = runner.invoke(cli.app, ["buy", "tech1", "10"])

    assert result.exit_code == 0, result.stdout
    assert "Bought 10 tech1" in result.stdout
    saved = _saved(cli_config)
    assert saved["portfolio"]["cash"] == pytest.approx(9_000.0)
    assert saved["transactions"][0]["side"] == "buy"


def test_rejected_trade_exits_non_zero(cli_config: GameConfig) -> None:
    result = runner.invoke(cli.app, ["sell", "tech1", "1"])

    assert result.exit_code == 1
    assert "Not enough units held" in result.stdout


def test_locked_asset_message(cli_config: GameConfig) -> None:
    result = runner.invoke(cli.app, ["buy", "btc", "1"])

    assert result.exit_code == 1
    assert "locked" in result.stdout


def test_order_lifecycle(cli_config: GameConfig) -> None:
    created = runner.invoke(cli.app, ["order", "tech1", "buy", "2", "50"])
    assert created.exit_code == 0, created.stdout
    [order] = _saved(cli_config)["orders"]

    listed = runner.invoke(cli.app, ["orders"])
    assert listed.exit_code == 0
    assert "tech1" in listed.stdout

    cancelled = runner.invoke(cli.app, ["cancel", order["id"]])
    assert cancelled.exit_code == 0, cancelled.stdout
    saved = _saved(cli_config)
    assert saved["orders"] == []
    assert saved["transactions"][0]["status"] == "cancelled"


def test_claim_achievement_after_first_action(cli_config: GameConfig) -> None:
    runner.invoke(cli.app, ["buy", "tech1", "1"])

    listed = runner.invoke(cli.app, ["achievements", "--unlocked-only"])
    assert listed.exit_code == 0
    assert "first_grand" in listed.stdout

    claimed = runner.invoke(cli.app, ["claim", "first_grand"])
    assert claimed.exit_code == 0, claimed.stdout
    assert _saved(cli_config)["boost_tokens"] == 3

    boosted = runner.invoke(cli.app, ["boost", "market_frenzy"])
    assert boosted.exit_code == 1
    assert "Not enough boost tokens" in boosted.stdout


def test_claim_on_a_new_game(cli_config: GameConfig) -> None:
    runner.invoke(cli.app, ["status"])

    claimed = runner.invoke(cli.app, ["claim", "first_grand"])
    assert claimed.exit_code == 0, claimed.stdout
    assert _saved(cli_config)["boost_tokens"] == 3

    again = runner.invoke(cli.app, ["claim", "first_grand"])
    assert again.exit_code == 1
    assert "Reward already claimed" in again.stdout


def test_unlocked_listing_on_a_new_game(cli_config: GameConfig) -> None:
    listed = runner.invoke(cli.app, ["achievements", "--unlocked-only"])

    assert listed.exit_code == 0, listed.stdout
    assert "first_grand" in listed.stdout
    assert "high_roller" not in listed.stdout


def test_market_and_boost_listings(cli_config: GameConfig) -> None:
    market = runner.invoke(cli.app, ["market"])
    boosts = runner.invoke(cli.app, ["boosts"])

    assert market.exit_code == 0
    assert "tech1" in market.stdout
    assert boosts.exit_code == 0
    assert "quick_income" in boosts.stdout


def test_play_runs_ticks_and_saves(
    cli_config: GameConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    fast = cli_config.model_copy(update={"price_tick_seconds": 0.01})
    monkeypatch.setattr(cli, "load_config", lambda: fast)

    result = runner.invoke(cli.app, ["play", "--seconds", "0.1"])

    assert result.exit_code == 0, result.stdout
    assert "price tick" in result.stdout
    saved = _saved(fast)
    assert saved["assets"][0]["price_history"]


def test_corrupt_save_file_reports_persistence_error(cli_config: GameConfig) -> None:
    cli_config.data_dir.mkdir(parents=True, exist_ok=True)
    (cli_config.data_dir / f"{cli_config.user_id}.json").write_text("[]", encoding="utf-8")

    result = runner.invoke(cli.app, ["status"])

    assert result.exit_code == 2
    assert "Persistence error" in result.stdout


def test_data_dir_is_a_plain_directory(cli_config: GameConfig) -> None:
    runner.invoke(cli.app, ["status"])

    assert isinstance(cli_config.data_dir, Path)
    assert cli_config.data_dir.is_dir()
