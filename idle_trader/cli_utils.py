"""Shared helpers for the CLI: logging setup, session wiring and rendering."""

from __future__ import annotations

import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

from loguru import logger
from rich.table import Table

from idle_trader.catalog import default_catalog
from idle_trader.core.config import GameConfig
from idle_trader.core.events import EventBus
from idle_trader.core.telemetry import TelemetryReporter
from idle_trader.models import ActionResult, RejectReason
from idle_trader.persistence import GameRepository, JsonFileGateway
from idle_trader.session import GameSession

T = TypeVar("T")

TELEMETRY_FILE = "telemetry.jsonl"

REJECTION_MESSAGES: dict[RejectReason, str] = {
    RejectReason.INVALID_QUANTITY: "Quantity must be a positive whole number",
    RejectReason.INVALID_PRICE: "Target price must be positive",
    RejectReason.UNKNOWN_ASSET: "No such asset",
    RejectReason.ASSET_LOCKED: "Asset is still locked; grow your net worth to unlock it",
    RejectReason.INSUFFICIENT_FUNDS: "Not enough cash",
    RejectReason.INSUFFICIENT_HOLDINGS: "Not enough units held",
    RejectReason.UNKNOWN_ORDER: "No such open order",
    RejectReason.UNKNOWN_ACHIEVEMENT: "No such achievement",
    RejectReason.ACHIEVEMENT_LOCKED: "Achievement not unlocked yet",
    RejectReason.REWARD_ALREADY_CLAIMED: "Reward already claimed",
    RejectReason.UNKNOWN_BOOST: "No such boost",
    RejectReason.INSUFFICIENT_TOKENS: "Not enough boost tokens",
    RejectReason.BOOST_ALREADY_ACTIVE: "Boost is already active",
}


def setup_logging(log_dir: Path, verbose: bool = False) -> None:
    """Configure loguru logging.

    Args:
        log_dir: Directory for log files
        verbose: Enable verbose debug logging
    """
    logger.remove()

    log_level = "DEBUG" if verbose else "WARNING"
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>",
        level=log_level,
    )

    logger.add(
        log_dir / "idle_trader_{time}.log",
        rotation="1 day",
        retention="7 days",
        level="DEBUG",
    )


async def run_with_session(
    config: GameConfig,
    action: Callable[[GameSession], Awaitable[T]],
    *,
    save: bool = False,
) -> T:
    """Load the configured player's game, run ``action`` and optionally save.

    ``save`` forces a full write before returning so one-shot commands never
    leave changes in the debounce window.
    """
    catalog = default_catalog()
    event_bus = EventBus()
    telemetry = TelemetryReporter(event_bus=event_bus, file_path=config.log_dir / TELEMETRY_FILE)
    repository = GameRepository(JsonFileGateway(config.data_dir), catalog, config)
    session = await GameSession.load(
        repository,
        config.user_id,
        catalog=catalog,
        config=config,
        event_bus=event_bus,
        telemetry=telemetry,
    )
    try:
        return await action(session)
    finally:
        if save:
            await session.close()


def describe_result(result: ActionResult) -> str:
    if result.ok:
        return "OK"
    if result.reason is None:
        return "Rejected"
    return REJECTION_MESSAGES.get(result.reason, result.reason.value)


def status_table(session: GameSession) -> Table:
    state = session.state
    xp = state.xp_stats
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_row("Cash:", f"${state.portfolio.cash:,.2f}")
    table.add_row("Holdings Value:", f"${session.holdings_value():,.2f}")
    table.add_row("Net Worth:", f"${session.total_portfolio_value():,.2f}")
    table.add_row("Level:", f"{xp.level} ({xp.current_xp:,.0f}/{xp.xp_to_next_level:,.0f} XP)")
    table.add_row("Idle Bonus:", f"{session.idle_bonus() * 100:.2f}%")
    table.add_row("Idle Interval:", f"{session.idle_tick_interval():.0f}s")
    table.add_row("Boost Tokens:", str(state.boost_tokens))
    table.add_row("Open Orders:", str(len(state.orders)))
    table.add_row("Unlocked Assets:", ", ".join(state.unlocked_assets))
    return table


def holdings_table(session: GameSession) -> Table:
    state = session.state
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Asset")
    table.add_column("Qty", justify="right")
    table.add_column("Locked", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("P&L", justify="right")
    for holding in state.portfolio.holdings:
        price = state.current_price(holding.asset_id) or 0.0
        pnl = (price - holding.average_price) * holding.quantity
        color = "green" if pnl >= 0 else "red"
        table.add_row(
            holding.asset_id,
            str(holding.quantity),
            str(session.locked_quantity(holding.asset_id)),
            f"${holding.average_price:,.2f}",
            f"${price:,.2f}",
            f"[{color}]{pnl:+,.2f}[/]",
        )
    return table


def market_table(session: GameSession) -> Table:
    state = session.state
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Asset")
    table.add_column("Symbol")
    table.add_column("Category")
    table.add_column("Price", justify="right")
    table.add_column("Trend", justify="right")
    table.add_column("Unlock At", justify="right")
    for asset in session.catalog.assets:
        price = state.current_price(asset.id) or asset.base_price
        insight = session.asset_insight(asset.id)
        trend = "-"
        if insight is not None:
            color = "green" if insight.trend.is_positive else "red"
            trend = f"[{color}]{insight.trend.change_pct:+.2f}%[/]"
        unlocked = asset.id in state.unlocked_assets
        table.add_row(
            asset.id,
            asset.symbol,
            asset.category.value,
            f"${price:,.2f}",
            trend,
            "unlocked" if unlocked else f"${asset.unlock_price:,.0f}",
        )
    return table
