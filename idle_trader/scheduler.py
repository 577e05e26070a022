"""Background loops driving price and idle-income ticks."""

from __future__ import annotations

import asyncio
from contextlib import suppress

from loguru import logger

from idle_trader.core.config import GameConfig
from idle_trader.core.events import DiagnosticKind
from idle_trader.core.telemetry import TelemetryReporter
from idle_trader.errors import PersistenceError
from idle_trader.session import GameSession


class TickScheduler:
    """Runs the price loop and the idle-income loop for one session."""

    def __init__(
        self,
        session: GameSession,
        config: GameConfig | None = None,
        telemetry: TelemetryReporter | None = None,
    ) -> None:
        self.session = session
        self.config = config or session.config
        self._telemetry = telemetry or session.telemetry
        self._tasks: list[asyncio.Task[None]] = []
        self.price_ticks = 0
        self.idle_ticks = 0

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._run_price_loop()),
            asyncio.create_task(self._run_idle_loop()),
        ]
        logger.info(
            "Tick scheduler started (price every {}s, idle every {}s)",
            self.config.price_tick_seconds,
            self.session.idle_tick_interval(),
        )

    async def stop(self) -> None:
        """Cancel both loops and force-save the session.

        A failed save is logged and left on the session for a retry.
        """
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with suppress(asyncio.CancelledError):
                await task
        was_running = bool(self._tasks)
        self._tasks = []
        try:
            await self.session.force_save()
        except PersistenceError as exc:
            logger.error("Final save failed: {}", exc)
        if was_running:
            logger.info(
                "Tick scheduler stopped after {} price and {} idle ticks",
                self.price_ticks,
                self.idle_ticks,
            )

    async def run_for(self, seconds: float) -> None:
        """Run both loops for ``seconds`` and stop."""
        await self.start()
        try:
            await asyncio.sleep(seconds)
        finally:
            await self.stop()

    async def _run_price_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.config.price_tick_seconds)
                try:
                    fills = await self.session.tick_prices()
                except Exception as e:
                    logger.error("Price tick failed: {}", e)
                    await self._report(DiagnosticKind.PRICE_TICK_FAILED, e, self.price_ticks)
                    continue
                self.price_ticks += 1
                if fills:
                    logger.debug("Price tick filled {} order(s)", len(fills))
        except asyncio.CancelledError:
            logger.debug("Price loop cancelled")
            raise

    async def _run_idle_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.session.idle_tick_interval())
                try:
                    await self.session.tick_idle_income()
                except Exception as e:
                    logger.error("Idle tick failed: {}", e)
                    await self._report(DiagnosticKind.IDLE_TICK_FAILED, e, self.idle_ticks)
                    continue
                self.idle_ticks += 1
        except asyncio.CancelledError:
            logger.debug("Idle loop cancelled")
            raise

    async def _report(self, kind: DiagnosticKind, error: Exception, ticks: int) -> None:
        if self._telemetry is not None:
            await self._telemetry.tick_failed(kind, error, ticks=ticks)
