"""Game session: the single owner of a player's mutable game state."""

from __future__ import annotations

import asyncio
import math
import random
from collections.abc import Callable
from datetime import datetime
from typing import Any

from loguru import logger

from idle_trader.catalog import Achievement, Catalog, default_catalog
from idle_trader.catalog.features import ADVANCED_ANALYTICS, MARKET_TRENDS
from idle_trader.core.config import GameConfig
from idle_trader.core.events import (
    AchievementEvent,
    BoostEvent,
    EventBus,
    EventTopic,
    IdleIncomeEvent,
    OrderAction,
    OrderEvent,
    PriceTickEvent,
    ProgressionEvent,
    TradeEvent,
)
from idle_trader.core.telemetry import TelemetryReporter
from idle_trader.engine import achievements, boosts, insights, ledger, orders, progression
from idle_trader.engine.prices import PriceModel, advance_prices
from idle_trader.engine.valuation import holdings_value, net_worth
from idle_trader.errors import PersistenceError
from idle_trader.models import (
    ActionResult,
    AchievementProgress,
    BoostKind,
    GameState,
    OrderSide,
    RejectReason,
    utc_now,
)
from idle_trader.persistence.coalescer import WriteCoalescer
from idle_trader.persistence.repository import GameRepository

Clock = Callable[[], datetime]

_TRADE_FIELDS = ("portfolio", "transactions", "xp_stats", "unlocked_assets", "achievements")


class GameSession:
    """Serializes every state transition of one player behind an asyncio lock.

    User actions and timer ticks each run as one indivisible transition:
    prune expired boosts, apply the change, refresh unlocks, re-evaluate
    achievements, then queue a debounced save of the touched fields. Rejected
    actions return a failed ``ActionResult`` and leave the state untouched.
    """

    def __init__(
        self,
        state: GameState,
        *,
        catalog: Catalog | None = None,
        config: GameConfig | None = None,
        event_bus: EventBus | None = None,
        coalescer: WriteCoalescer | None = None,
        user_id: str | None = None,
        rng: random.Random | None = None,
        clock: Clock = utc_now,
        telemetry: TelemetryReporter | None = None,
    ) -> None:
        self._state = state
        self.telemetry = telemetry
        self.catalog = catalog or default_catalog()
        self.config = config or GameConfig()
        self.event_bus = event_bus or EventBus()
        self.user_id = user_id or self.config.user_id
        self._coalescer = coalescer
        self._rng = rng or random.Random(self.config.rng_seed)
        self._clock = clock
        self._price_model = PriceModel.from_config(self.config)
        self._lock = asyncio.Lock()
        self._events: list[tuple[EventTopic, object]] = []

    @classmethod
    async def load(
        cls,
        repository: GameRepository,
        user_id: str,
        *,
        catalog: Catalog | None = None,
        config: GameConfig | None = None,
        event_bus: EventBus | None = None,
        telemetry: TelemetryReporter | None = None,
        rng: random.Random | None = None,
        clock: Clock = utc_now,
    ) -> GameSession:
        """Load (or initialize) the user's game and wire the debounced writer.

        Raises ``PersistenceError`` when the gateway is unavailable.
        """
        config = config or GameConfig()
        state = await repository.load(user_id, now=clock())
        coalescer = WriteCoalescer(repository.save, config.save_debounce_seconds, telemetry)
        return cls(
            state,
            catalog=catalog,
            config=config,
            event_bus=event_bus,
            coalescer=coalescer,
            user_id=user_id,
            rng=rng,
            clock=clock,
            telemetry=telemetry,
        )

    @property
    def state(self) -> GameState:
        """Live state for read-only display. Mutate only through session methods."""
        return self._state

    def snapshot(self) -> GameState:
        return self._state.model_copy(deep=True)

    # Ticks

    async def tick_prices(self) -> list[orders.OrderFill]:
        """Advance prices one step, then fill any orders the new prices trigger."""
        async with self._lock:
            now = self._clock()
            self._prune_boosts(now)
            state = self._state
            state.assets = advance_prices(
                state.assets,
                self.catalog,
                state.active_boosts,
                now=now,
                rng=self._rng,
                model=self._price_model,
            )
            state.last_update = now
            self._emit(
                EventTopic.PRICE_TICK,
                PriceTickEvent(
                    prices={asset.asset_id: asset.current_price for asset in state.assets},
                    timestamp=now,
                ),
            )

            fills = orders.check_orders(
                state,
                self.catalog,
                now=now,
                enforce_unlocks=self.config.enforce_asset_unlocks,
            )
            for fill in fills:
                self._emit(
                    EventTopic.ORDER,
                    OrderEvent(order=fill.order, action=OrderAction.FILLED, timestamp=now),
                )
                self._record_trade(fill.result, now, order_id=fill.order.id)

            fields = ["assets", "last_update", "active_boosts"]
            if fills:
                fields += ["orders", *_TRADE_FIELDS]
            self._finish(now, *fields)
        await self._publish()
        return fills

    async def tick_idle_income(self) -> float:
        """Credit one idle tick of income to cash and return the amount."""
        async with self._lock:
            now = self._clock()
            fields = ["active_boosts"] if self._prune_boosts(now) else []
            income = progression.process_idle_income(
                self._state,
                now=now,
                base_rate=self.config.idle_base_rate,
                cap=self.config.idle_bonus_cap,
            )
            if income > 0:
                self._emit(
                    EventTopic.IDLE_INCOME,
                    IdleIncomeEvent(amount=income, cash=self._state.portfolio.cash, timestamp=now),
                )
                fields.append("portfolio")
            self._finish(now, *fields)
        await self._publish()
        return income

    # Player actions

    async def buy_asset(self, asset_id: str, quantity: int) -> ActionResult:
        async with self._lock:
            now = self._clock()
            self._prune_boosts(now)
            if (
                self.config.enforce_asset_unlocks
                and self.catalog.asset(asset_id) is not None
                and not ledger.is_unlocked(self._state, asset_id)
            ):
                return ActionResult.rejected(RejectReason.ASSET_LOCKED)
            result = ledger.buy(self._state, self.catalog, asset_id, quantity, now=now)
            if result.ok:
                self._record_trade(result, now)
                self._finish(now, *_TRADE_FIELDS)
        await self._publish()
        return result

    async def sell_asset(self, asset_id: str, quantity: int) -> ActionResult:
        async with self._lock:
            now = self._clock()
            self._prune_boosts(now)
            result = ledger.sell(self._state, self.catalog, asset_id, quantity, now=now)
            if result.ok:
                self._record_trade(result, now)
                self._finish(now, *_TRADE_FIELDS)
        await self._publish()
        return result

    async def create_order(
        self, asset_id: str, side: OrderSide, quantity: int, target_price: float
    ) -> ActionResult:
        async with self._lock:
            now = self._clock()
            result = orders.create_order(
                self._state,
                self.catalog,
                asset_id,
                OrderSide(side),
                quantity,
                target_price,
                now=now,
            )
            if result.ok and result.order is not None:
                self._emit(
                    EventTopic.ORDER,
                    OrderEvent(order=result.order, action=OrderAction.CREATED, timestamp=now),
                )
                self._finish(now, "orders")
        await self._publish()
        return result

    async def cancel_order(self, order_id: str) -> ActionResult:
        async with self._lock:
            now = self._clock()
            result = orders.cancel_order(self._state, order_id, now=now)
            if result.ok and result.order is not None:
                self._emit(
                    EventTopic.ORDER,
                    OrderEvent(order=result.order, action=OrderAction.CANCELLED, timestamp=now),
                )
                self._finish(now, "orders", *_TRADE_FIELDS)
        await self._publish()
        return result

    async def activate_boost(self, boost_id: str) -> ActionResult:
        async with self._lock:
            now = self._clock()
            result = boosts.activate_boost(self._state, self.catalog, boost_id, now)
            if result.ok:
                active = self._state.active_boosts[-1]
                self._emit(
                    EventTopic.BOOST,
                    BoostEvent(
                        boost_id=active.id,
                        kind=active.kind,
                        end_time=active.end_time,
                        tokens_left=self._state.boost_tokens,
                        timestamp=now,
                    ),
                )
                self._finish(now, "boost_tokens", "active_boosts")
        await self._publish()
        return result

    async def claim_achievement_reward(self, achievement_id: str) -> ActionResult:
        """Claim a reward, counting achievements the current state already satisfies."""
        async with self._lock:
            now = self._clock()
            newly_unlocked = self._evaluate_achievements(now)
            result = achievements.claim_reward(self._state, self.catalog, achievement_id)
            if not result.ok and newly_unlocked:
                self._schedule_save("achievements")
            if result.ok:
                definition = self.catalog.achievement(achievement_id)
                if definition is not None:
                    self._emit(
                        EventTopic.ACHIEVEMENT,
                        AchievementEvent(
                            achievement_id=definition.id,
                            name=definition.name,
                            reward=definition.reward,
                            claimed=True,
                            timestamp=now,
                        ),
                    )
                self._finish(now, "achievements", "boost_tokens")
        await self._publish()
        return result

    async def check_achievements(self) -> list[Achievement]:
        """Re-evaluate achievements against the current state."""
        async with self._lock:
            now = self._clock()
            unlocked = self._evaluate_achievements(now)
            if unlocked:
                self._schedule_save("achievements")
        await self._publish()
        return unlocked

    # Derived queries

    def total_portfolio_value(self) -> float:
        """Cash plus the market value of all holdings."""
        return net_worth(self._state)

    def holdings_value(self) -> float:
        return holdings_value(self._state)

    def locked_quantity(self, asset_id: str) -> int:
        return orders.locked_quantity(self._state, asset_id)

    def available_quantity(self, asset_id: str) -> int:
        """Held units not reserved by open sell orders."""
        holding = self._state.portfolio.holding(asset_id)
        held = holding.quantity if holding is not None else 0
        return max(0, held - self.locked_quantity(asset_id))

    def achievement_progress(self, achievement_id: str) -> AchievementProgress | None:
        return self._state.achievement(achievement_id)

    def idle_bonus(self) -> float:
        return progression.idle_bonus(
            self._state.xp_stats.unlocked_features,
            self._state.active_boosts,
            base_rate=self.config.idle_base_rate,
            cap=self.config.idle_bonus_cap,
            now=self._clock(),
        )

    def idle_tick_interval(self) -> float:
        return progression.idle_tick_interval(
            self._state.xp_stats.unlocked_features,
            base_seconds=self.config.idle_base_interval_seconds,
            reduction_seconds=self.config.idle_interval_reduction_seconds,
            minimum_seconds=self.config.idle_min_interval_seconds,
        )

    def asset_insight(self, asset_id: str) -> insights.AssetInsight | None:
        """Trend (and, with Advanced Analytics, price metrics) once unlocked."""
        xp_stats = self._state.xp_stats
        asset = self.catalog.asset(asset_id)
        runtime = self._state.asset_state(asset_id)
        if asset is None or runtime is None or not xp_stats.has_feature(MARKET_TRENDS):
            return None
        metrics = None
        if xp_stats.has_feature(ADVANCED_ANALYTICS):
            metrics = insights.price_metrics(runtime.price_history, self._clock())
        return insights.AssetInsight(
            asset_id=asset_id,
            trend=insights.trend_signal(runtime.price_history, asset.volatility),
            metrics=metrics,
        )

    # Persistence

    @property
    def persistence_error(self) -> PersistenceError | None:
        return self._coalescer.last_error if self._coalescer is not None else None

    @property
    def retry_available(self) -> bool:
        return self._coalescer is not None and self._coalescer.retry_available

    async def force_save(self) -> bool:
        """Write the full state now, bypassing the debounce window.

        Raises ``PersistenceError`` if the gateway write fails; the state in
        memory stays authoritative either way.
        """
        if self._coalescer is None:
            return False
        async with self._lock:
            self._coalescer.schedule(self.user_id, self._state.to_document())
        return await self._coalescer.force_save(self.user_id)

    async def close(self) -> None:
        if self._coalescer is None:
            return
        try:
            await self.force_save()
        finally:
            await self._coalescer.close()

    # Internals (caller holds self._lock)

    def _prune_boosts(self, now: datetime) -> bool:
        before = len(self._state.active_boosts)
        self._state.active_boosts = boosts.prune_expired(self._state.active_boosts, now)
        expired = before - len(self._state.active_boosts)
        if expired:
            logger.debug("Pruned {} expired boost(s)", expired)
        return expired > 0

    def _record_trade(
        self, result: ActionResult, now: datetime, *, order_id: str | None = None
    ) -> None:
        if result.transaction is None:
            return
        self._emit(
            EventTopic.TRADE,
            TradeEvent(
                transaction=result.transaction,
                realized_profit=result.realized_profit,
                order_id=order_id,
            ),
        )
        if result.transaction.side == OrderSide.SELL:
            self._gain_xp(result.realized_profit, now)

    def _gain_xp(self, profit: float, now: datetime) -> None:
        base_xp = progression.xp_from_profit(profit, self.config.xp_divisor)
        multiplier = boosts.active_multiplier(self._state.active_boosts, BoostKind.XP_GAIN, now)
        gained = math.floor(base_xp * multiplier)
        if gained <= 0:
            return
        old_level = self._state.xp_stats.level
        self._state.xp_stats, new_features = progression.apply_xp(
            self._state.xp_stats,
            gained,
            self.catalog.features,
            xp_per_level=self.config.xp_per_level,
            base_rate=self.config.idle_base_rate,
            cap=self.config.idle_bonus_cap,
        )
        self._emit(
            EventTopic.PROGRESSION,
            ProgressionEvent(
                xp_gained=gained,
                old_level=old_level,
                new_level=self._state.xp_stats.level,
                timestamp=now,
                unlocked_features=tuple(feature.name for feature in new_features),
            ),
        )

    def _evaluate_achievements(self, now: datetime) -> list[Achievement]:
        unlocked = achievements.evaluate(self._state, self.catalog, now=now)
        for definition in unlocked:
            self._emit(
                EventTopic.ACHIEVEMENT,
                AchievementEvent(
                    achievement_id=definition.id,
                    name=definition.name,
                    reward=definition.reward,
                    claimed=False,
                    timestamp=now,
                ),
            )
        return unlocked

    def _finish(self, now: datetime, *fields: str) -> None:
        touched = set(fields)
        if ledger.refresh_unlocked_assets(self._state, self.catalog):
            touched.add("unlocked_assets")
        if self._evaluate_achievements(now):
            touched.add("achievements")
        self._schedule_save(*touched)

    def _schedule_save(self, *fields: str) -> None:
        if self._coalescer is None or not fields:
            return
        patch: dict[str, Any] = self._state.model_dump(mode="json", include=set(fields))
        self._coalescer.schedule(self.user_id, patch)

    def _emit(self, topic: EventTopic, payload: object) -> None:
        self._events.append((topic, payload))

    async def _publish(self) -> None:
        events, self._events = self._events, []
        for topic, payload in events:
            await self.event_bus.publish(topic, payload)
