"""Event bus and event definitions for the game simulation."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from idle_trader.core import constants
from idle_trader.models import BoostKind, Order, Transaction


class EventTopic(str, Enum):
    """Enumerates supported event channels."""

    PRICE_TICK = "price_tick"
    TRADE = "trade"
    ORDER = "order"
    PROGRESSION = "progression"
    ACHIEVEMENT = "achievement"
    BOOST = "boost"
    IDLE_INCOME = "idle_income"
    DIAGNOSTIC = "diagnostic"


class OrderAction(str, Enum):
    CREATED = "created"
    CANCELLED = "cancelled"
    FILLED = "filled"


@dataclass(frozen=True, slots=True)
class PriceTickEvent:
    """Payload emitted after every price tick with the new prices."""

    prices: dict[str, float]
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class TradeEvent:
    """Payload representing a filled buy or sell."""

    transaction: Transaction
    realized_profit: float = 0.0
    order_id: str | None = None


@dataclass(frozen=True, slots=True)
class OrderEvent:
    order: Order
    action: OrderAction
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class ProgressionEvent:
    """Payload emitted when XP is gained."""

    xp_gained: int
    old_level: int
    new_level: int
    timestamp: datetime
    unlocked_features: tuple[str, ...] = field(default_factory=tuple)

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


@dataclass(frozen=True, slots=True)
class AchievementEvent:
    achievement_id: str
    name: str
    reward: int
    claimed: bool
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class BoostEvent:
    boost_id: str
    kind: BoostKind
    end_time: datetime
    tokens_left: int
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class IdleIncomeEvent:
    amount: float
    cash: float
    timestamp: datetime


class DiagnosticKind(str, Enum):
    """Failures and recoveries reported outside the game's normal event flow."""

    SAVE_FAILED = "persistence.save_failed"
    SAVE_RECOVERED = "persistence.save_recovered"
    PRICE_TICK_FAILED = "scheduler.price_tick_failed"
    IDLE_TICK_FAILED = "scheduler.idle_tick_failed"


@dataclass(frozen=True, slots=True)
class DiagnosticEvent:
    """Structured record of a persistence or scheduler failure."""

    kind: DiagnosticKind
    level: str
    timestamp: datetime
    user_id: str | None = None
    error: str | None = None
    details: dict[str, str | int | float | bool | None] = field(default_factory=dict)


class EventSubscription:
    """Async iterator over events for a given topic.

    The queue holds at most ``maxsize`` payloads; when a subscriber falls
    behind, the oldest payload is dropped and counted in ``dropped``.
    """

    def __init__(
        self, bus: EventBus, topic: EventTopic, maxsize: int = constants.EVENT_QUEUE_SIZE
    ) -> None:
        self._bus = bus
        self._topic = topic
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._active = True
        self.dropped = 0
        self._bus._register(topic, self)

    def __aiter__(self) -> AsyncIterator[object]:
        return self

    async def __anext__(self) -> object:
        if not self._active:
            raise StopAsyncIteration
        return await self._queue.get()

    async def get(self) -> object:
        """Retrieve the next event payload."""
        return await self.__anext__()

    def get_nowait(self) -> object:
        """Retrieve an already-published payload without waiting."""
        return self._queue.get_nowait()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Unsubscribe from the event bus."""
        if self._active:
            self._active = False
            self._bus._unregister(self._topic, self)

    def _deliver(self, payload: object) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(payload)

    async def __aenter__(self) -> EventSubscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class EventBus:
    """Simple pub/sub event bus built on bounded asyncio queues.

    Publishing never waits on a slow subscriber.
    """

    def __init__(self, queue_size: int = constants.EVENT_QUEUE_SIZE) -> None:
        self._topics: defaultdict[EventTopic, list[EventSubscription]] = defaultdict(list)
        self._lock = asyncio.Lock()
        self.queue_size = queue_size

    def subscribe(self, topic: EventTopic) -> EventSubscription:
        """Subscribe to a topic."""
        return EventSubscription(self, topic, self.queue_size)

    async def publish(self, topic: EventTopic, payload: object) -> None:
        """Publish payload to all subscribers of topic."""
        async with self._lock:
            subscribers = list(self._topics.get(topic, []))
        for subscription in subscribers:
            subscription._deliver(payload)

    def _register(self, topic: EventTopic, subscription: EventSubscription) -> None:
        self._topics[topic].append(subscription)

    def _unregister(self, topic: EventTopic, subscription: EventSubscription) -> None:
        subscribers = self._topics.get(topic)
        if not subscribers:
            return
        try:
            subscribers.remove(subscription)
        except ValueError:
            return
        if not subscribers:
            self._topics.pop(topic, None)
