"""Debounced write path: coalesce bursts of saves into one gateway write."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Awaitable, Callable, Mapping
from contextlib import suppress
from typing import Any

from loguru import logger

from idle_trader.core.telemetry import TelemetryReporter
from idle_trader.errors import PersistenceError

Writer = Callable[[str, Mapping[str, Any]], Awaitable[None]]


class WriteCoalescer:
    """Timer-backed buffer holding the latest pending patch per user.

    The first ``schedule`` for a user starts a timer of ``delay_seconds``;
    patches scheduled before it fires are merged (later fields win) and
    written once. ``force_save`` cancels the timer and writes immediately.
    A failed write keeps its patch pending so a later save or ``retry`` can
    deliver it.
    """

    def __init__(
        self,
        writer: Writer,
        delay_seconds: float,
        telemetry: TelemetryReporter | None = None,
    ) -> None:
        self._writer = writer
        self._delay = delay_seconds
        self._telemetry = telemetry
        self._pending: dict[str, dict[str, Any]] = {}
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._write_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.last_error: PersistenceError | None = None
        self.writes = 0

    @property
    def retry_available(self) -> bool:
        return self.last_error is not None and bool(self._pending)

    def has_pending(self, user_id: str) -> bool:
        return user_id in self._pending

    def schedule(self, user_id: str, patch: Mapping[str, Any]) -> None:
        """Queue ``patch`` for ``user_id``. Must be called from a running loop."""
        self._pending.setdefault(user_id, {}).update(patch)
        if user_id not in self._timers:
            self._timers[user_id] = asyncio.get_running_loop().create_task(
                self._flush_later(user_id)
            )

    async def force_save(self, user_id: str) -> bool:
        """Write any pending patch for ``user_id`` now.

        Returns True when something was written. Raises ``PersistenceError``
        when the gateway write fails.
        """
        timer = self._timers.pop(user_id, None)
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()
        return await self._write(user_id)

    async def retry(self) -> None:
        for user_id in list(self._pending):
            await self.force_save(user_id)

    async def close(self) -> None:
        """Cancel timers and flush every pending patch."""
        errors: list[PersistenceError] = []
        for user_id in list(self._pending):
            try:
                await self.force_save(user_id)
            except PersistenceError as exc:
                errors.append(exc)
        for timer in list(self._timers.values()):
            timer.cancel()
            with suppress(asyncio.CancelledError):
                await timer
        self._timers.clear()
        if errors:
            raise errors[0]

    async def _flush_later(self, user_id: str) -> None:
        await asyncio.sleep(self._delay)
        self._timers.pop(user_id, None)
        # Failures are recorded on last_error and reported by _write.
        with suppress(PersistenceError):
            await self._write(user_id)

    async def _write(self, user_id: str) -> bool:
        async with self._write_locks[user_id]:
            patch = self._pending.pop(user_id, None)
            if not patch:
                return False
            try:
                await self._writer(user_id, patch)
            except PersistenceError as exc:
                self._pending[user_id] = {**patch, **self._pending.get(user_id, {})}
                self.last_error = exc
                logger.warning("Save failed for {}: {}", user_id, exc)
                if self._telemetry is not None:
                    await self._telemetry.save_failed(user_id, exc, patch)
                raise
            self.last_error = None
            self.writes += 1
            logger.debug("Wrote {} field(s) for {}", len(patch), user_id)
            if self._telemetry is not None:
                await self._telemetry.save_succeeded(user_id)
            return True
