"""Diagnostics for save failures and scheduler tick errors."""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter

from idle_trader.core.events import DiagnosticEvent, DiagnosticKind, EventBus, EventTopic

_RECORD = TypeAdapter(DiagnosticEvent)

_LEVELS = {
    DiagnosticKind.SAVE_FAILED: "WARNING",
    DiagnosticKind.SAVE_RECOVERED: "INFO",
    DiagnosticKind.PRICE_TICK_FAILED: "ERROR",
    DiagnosticKind.IDLE_TICK_FAILED: "ERROR",
}


class TelemetryReporter:
    """Records persistence and tick failures of a running game.

    Each record is published on the ``diagnostic`` topic when an event bus is
    given and appended to a JSON lines file when ``file_path`` is set. The
    reporter counts consecutive failed saves per user, so the recovery record
    says how many writes were retried, and keeps the latest records in
    ``recent`` for display.
    """

    def __init__(
        self,
        *,
        event_bus: EventBus | None = None,
        file_path: Path | None = None,
        history: int = 50,
    ) -> None:
        self._event_bus = event_bus
        self._file_path = Path(file_path) if file_path is not None else None
        if self._file_path is not None:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._failed_saves: defaultdict[str, int] = defaultdict(int)
        self.recent: deque[DiagnosticEvent] = deque(maxlen=history)

    def failed_saves(self, user_id: str) -> int:
        """Consecutive failed writes for ``user_id`` since the last success."""
        return self._failed_saves.get(user_id, 0)

    async def save_failed(self, user_id: str, error: Exception, fields: Iterable[str]) -> None:
        self._failed_saves[user_id] += 1
        await self._record(
            DiagnosticKind.SAVE_FAILED,
            user_id=user_id,
            error=error,
            details={
                "fields": ",".join(sorted(fields)),
                "attempt": self._failed_saves[user_id],
            },
        )

    async def save_succeeded(self, user_id: str) -> None:
        """Close a failure streak; a no-op when the previous write succeeded."""
        attempts = self._failed_saves.pop(user_id, 0)
        if attempts:
            await self._record(
                DiagnosticKind.SAVE_RECOVERED,
                user_id=user_id,
                details={"failed_attempts": attempts},
            )

    async def tick_failed(self, kind: DiagnosticKind, error: Exception, *, ticks: int) -> None:
        """Report a price or idle tick that raised; ``ticks`` counts completed ticks."""
        await self._record(
            kind,
            error=error,
            details={"completed_ticks": ticks, "error_type": type(error).__name__},
        )

    async def _record(
        self,
        kind: DiagnosticKind,
        *,
        user_id: str | None = None,
        error: Exception | None = None,
        details: dict[str, str | int | float | bool | None] | None = None,
    ) -> None:
        event = DiagnosticEvent(
            kind=kind,
            level=_LEVELS[kind],
            timestamp=datetime.now(tz=UTC),
            user_id=user_id,
            error=str(error) if error is not None else None,
            details=details or {},
        )
        self.recent.append(event)
        logger.debug("Diagnostic {} recorded ({})", kind.value, event.level)
        if self._file_path is not None:
            with self._file_path.open("a", encoding="utf-8") as handle:
                handle.write(_RECORD.dump_json(event).decode("utf-8"))
                handle.write("\n")
        if self._event_bus is not None:
            await self._event_bus.publish(EventTopic.DIAGNOSTIC, event)
