"""CLI entry point for Idle Trader."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from idle_trader.cli_utils import (
    describe_result,
    holdings_table,
    market_table,
    run_with_session,
    setup_logging,
    status_table,
)
from idle_trader.core.config import GameConfig, load_config
from idle_trader.errors import PersistenceError
from idle_trader.models import ActionResult, OrderSide
from idle_trader.scheduler import TickScheduler
from idle_trader.session import GameSession

T = TypeVar("T")

app = typer.Typer(
    name="idle-trader",
    help="Idle trading game - buy low, sell high, level up while you wait",
)

console = Console()


def _prepare(verbose: bool) -> GameConfig:
    config = load_config()
    config.ensure_directories()
    setup_logging(config.log_dir, verbose)
    return config


def _report(result: ActionResult, success: str) -> None:
    if result.ok:
        console.print(f"[green]{success}[/]")
        return
    console.print(f"[red]Rejected:[/] {describe_result(result)}")
    raise typer.Exit(code=1)


def _run(
    action: Callable[[GameSession], Awaitable[T]], config: GameConfig, *, save: bool = False
) -> T:
    try:
        return asyncio.run(run_with_session(config, action, save=save))
    except PersistenceError as exc:
        console.print(f"[red]Persistence error:[/] {exc}")
        raise typer.Exit(code=2) from exc


@app.command()
def status(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Show cash, net worth, level and holdings."""
    config = _prepare(verbose)

    async def _show(session: GameSession) -> None:
        console.print(status_table(session))
        if session.state.portfolio.holdings:
            console.print(holdings_table(session))

    _run(_show, config)


@app.command()
def market(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List every asset with its current price and unlock threshold."""
    config = _prepare(verbose)

    async def _show(session: GameSession) -> None:
        console.print(market_table(session))

    _run(_show, config)


@app.command()
def buy(
    asset_id: str = typer.Argument(..., help="Asset id, e.g. tech1"),
    quantity: int = typer.Argument(..., help="Units to buy"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Buy units of an asset at the current price."""
    config = _prepare(verbose)

    async def _buy(session: GameSession) -> ActionResult:
        return await session.buy_asset(asset_id, quantity)

    result = _run(_buy, config, save=True)
    price = result.transaction.price if result.transaction is not None else 0.0
    _report(result, f"Bought {quantity} {asset_id} @ ${price:,.2f}")


@app.command()
def sell(
    asset_id: str = typer.Argument(..., help="Asset id, e.g. tech1"),
    quantity: int = typer.Argument(..., help="Units to sell"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Sell units of an asset at the current price."""
    config = _prepare(verbose)

    async def _sell(session: GameSession) -> ActionResult:
        return await session.sell_asset(asset_id, quantity)

    result = _run(_sell, config, save=True)
    _report(result, f"Sold {quantity} {asset_id} (profit {result.realized_profit:+,.2f})")


@app.command()
def order(
    asset_id: str = typer.Argument(..., help="Asset id, e.g. tech1"),
    side: OrderSide = typer.Argument(..., help="buy or sell"),
    quantity: int = typer.Argument(..., help="Units to trade when triggered"),
    target_price: float = typer.Argument(..., help="Trigger price"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Place a conditional order that fills once the price crosses the target."""
    config = _prepare(verbose)

    async def _create(session: GameSession) -> ActionResult:
        return await session.create_order(asset_id, side, quantity, target_price)

    result = _run(_create, config, save=True)
    order_id = result.order.id if result.order is not None else "-"
    _report(result, f"Order {order_id} placed")


@app.command()
def cancel(
    order_id: str = typer.Argument(..., help="Open order id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Cancel an open order."""
    config = _prepare(verbose)

    async def _cancel(session: GameSession) -> ActionResult:
        return await session.cancel_order(order_id)

    _report(_run(_cancel, config, save=True), f"Order {order_id} cancelled")


@app.command()
def orders(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List open orders."""
    config = _prepare(verbose)

    async def _show(session: GameSession) -> None:
        open_orders = session.state.orders
        if not open_orders:
            console.print("No open orders.")
            return
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Id")
        table.add_column("Asset")
        table.add_column("Side")
        table.add_column("Qty", justify="right")
        table.add_column("Target", justify="right")
        table.add_column("Current", justify="right")
        for item in open_orders:
            current = session.state.current_price(item.asset_id) or 0.0
            table.add_row(
                item.id,
                item.asset_id,
                item.side.value,
                str(item.quantity),
                f"${item.target_price:,.2f}",
                f"${current:,.2f}",
            )
        console.print(table)

    _run(_show, config)


@app.command()
def boosts(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List purchasable boosts and the ones currently running."""
    config = _prepare(verbose)

    async def _show(session: GameSession) -> None:
        active = {boost.id: boost for boost in session.state.active_boosts}
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Id")
        table.add_column("Name")
        table.add_column("Effect")
        table.add_column("Duration", justify="right")
        table.add_column("Cost", justify="right")
        table.add_column("Active Until")
        for boost in session.catalog.boosts:
            running = active.get(boost.id)
            table.add_row(
                boost.id,
                boost.name,
                f"{boost.kind.value} x{boost.multiplier:g}",
                f"{boost.duration_seconds:g}s",
                str(boost.token_cost),
                running.end_time.strftime("%H:%M:%S") if running is not None else "",
            )
        console.print(table)
        console.print(f"Tokens: {session.state.boost_tokens}")

    _run(_show, config)


@app.command()
def boost(
    boost_id: str = typer.Argument(..., help="Boost id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Spend boost tokens to activate a boost."""
    config = _prepare(verbose)

    async def _activate(session: GameSession) -> ActionResult:
        return await session.activate_boost(boost_id)

    _report(_run(_activate, config, save=True), f"Boost {boost_id} activated")


@app.command()
def achievements(
    show_locked: bool = typer.Option(True, "--locked/--unlocked-only", help="Include locked"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List achievements with their unlock and claim status."""
    config = _prepare(verbose)

    async def _show(session: GameSession) -> None:
        await session.check_achievements()
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Id")
        table.add_column("Name")
        table.add_column("Reward", justify="right")
        table.add_column("Status")
        for definition in session.catalog.achievements:
            progress = session.achievement_progress(definition.id)
            if progress is not None and progress.reward_claimed:
                label = "[dim]claimed[/]"
            elif progress is not None and progress.unlocked:
                label = "[green]ready to claim[/]"
            elif show_locked:
                label = "locked"
            else:
                continue
            table.add_row(definition.id, definition.name, str(definition.reward), label)
        console.print(table)

    _run(_show, config, save=True)


@app.command()
def claim(
    achievement_id: str = typer.Argument(..., help="Achievement id"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Claim the token reward of an unlocked achievement."""
    config = _prepare(verbose)

    async def _claim(session: GameSession) -> ActionResult:
        return await session.claim_achievement_reward(achievement_id)

    _report(_run(_claim, config, save=True), f"Reward for {achievement_id} claimed")


@app.command()
def play(
    seconds: float = typer.Option(30.0, "--seconds", "-s", min=0, help="How long to run"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Run the price and idle-income loops headless, then show status."""
    config = _prepare(verbose)

    async def _play(session: GameSession) -> None:
        scheduler = TickScheduler(session, config)
        await scheduler.run_for(seconds)
        console.print(
            f"Ran {scheduler.price_ticks} price tick(s) and {scheduler.idle_ticks} idle tick(s)."
        )
        console.print(status_table(session))

    _run(_play, config, save=True)


if __name__ == "__main__":
    app()
